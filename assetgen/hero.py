import logging
from typing import Callable, Optional

from .generator import ImageCompositionClient
from .models import Asset, CompositionRequest, HeroImage
from .prompts import build_hero_prompt, build_overlay_text
from .render import DEFAULT_ACCENT, compose_locally


logger = logging.getLogger(__name__)

LocalCompositor = Callable[[str, str, str], str]


class HeroImagePipeline:
    """
    Produces the hero image for an asset: one remote composition attempt, then
    local composition on any failure. The remote call is never retried.

    `ImageLoadError` from the local step is not caught; there is nothing left
    to fall back to.
    """

    def __init__(
        self,
        client: ImageCompositionClient,
        compositor: LocalCompositor = compose_locally,
    ) -> None:
        self.client = client
        self.compositor = compositor

    def generate(
        self,
        source_image_ref: str,
        asset: Asset,
        size: Optional[str] = None,
        accent_color: str = DEFAULT_ACCENT,
        model: Optional[str] = None,
    ) -> HeroImage:
        request = CompositionRequest(
            source_image_ref=source_image_ref,
            instruction_text=build_hero_prompt(asset),
            size_tag=size or self.client.settings.image_size,
        )

        outcome = self.client.compose(request, model=model)
        if outcome.ok:
            return HeroImage(ref=outcome.value, source="remote")

        logger.info("Remote hero image unavailable (%s); composing locally", outcome.describe())
        data_url = self.compositor(source_image_ref, build_overlay_text(asset), accent_color)
        return HeroImage(ref=data_url, source="local")
