"""
Listing asset generation with graceful degradation.

Modules:
- config: immutable provider settings
- results: success/failure outcome type shared by the clients
- prompts: chat turn assembly and hero-image prompt text
- messaging: remote text/multimodal model adapter
- extract: JSON payload extraction from free-form model output
- core: text pipeline (full context, minimal context, local mock)
- generator: remote image composition adapter
- images: source image loading
- render: local hero-image composition with text overlay
- hero: image pipeline (remote first, local fallback)
- store: conversation persistence backends
- service: chat-turn orchestration on top of the pipelines
"""

from .config import ConfigError, Settings
from .core import AssetPipeline, mock_asset
from .hero import HeroImagePipeline
from .images import ImageLoadError
from .models import Asset, ChatTurn, GenerationRequest, HeroImage

__all__ = [
    "Asset",
    "AssetPipeline",
    "ChatTurn",
    "ConfigError",
    "GenerationRequest",
    "HeroImage",
    "HeroImagePipeline",
    "ImageLoadError",
    "Settings",
    "mock_asset",
]
