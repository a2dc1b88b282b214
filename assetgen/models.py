from dataclasses import dataclass
from typing import List, Literal, Optional, Tuple, TypedDict


Role = Literal["system", "user", "assistant"]


class ScriptSegment(TypedDict):
    s: int  # start second
    v: str  # caption / shot description


class Asset(TypedDict):
    """
    Marketing asset bundle, keyed exactly as the model is asked to return it.

    Kept as a plain mapping so a parsed model payload can be handed to
    persistence and rendering unchanged.
    """

    title: str
    selling_points: List[str]
    atmosphere: str
    video_script: List[ScriptSegment]


@dataclass(frozen=True)
class ChatTurn:
    role: Role
    content: str
    image_ref: Optional[str] = None


@dataclass(frozen=True)
class GenerationRequest:
    description: str
    history: Tuple[ChatTurn, ...] = ()
    image_ref: Optional[str] = None


@dataclass(frozen=True)
class CompositionRequest:
    source_image_ref: str
    instruction_text: str
    size_tag: str


@dataclass(frozen=True)
class HeroImage:
    """Final hero image: a remote URL or an embedded PNG data URL."""

    ref: str
    source: Literal["remote", "local"]

    @property
    def is_remote(self) -> bool:
        return self.source == "remote"
