from typing import Any, Dict, Iterable, List, Optional

from .models import Asset, ChatTurn


SYSTEM_PROMPT = (
    "你是电商运营专家。基于用户上传的商品信息与描述，仅返回一个JSON对象："
    '{"title":string,"selling_points":string[],"atmosphere":string,'
    '"video_script":Array<{s:number,v:string}>}，'
    "中文输出，标题10-30字，卖点3-5条，脚本3-10秒。"
)

OVERLAY_MAX_SELLING_POINTS = 3
OVERLAY_POINT_SEPARATOR = " · "
OVERLAY_SECTION_SEPARATOR = " | "

Message = Dict[str, Any]


def build_turns(
    description: str,
    history: Iterable[ChatTurn] = (),
    image_ref: Optional[str] = None,
    system_prompt: str = SYSTEM_PROMPT,
) -> List[Message]:
    """
    Assemble the chat messages for one generation attempt.

    Order is: system instruction, history (role + content only), current
    description. Only the final turn may carry the image; history turns are
    always sent as plain text even if they originally had an upload attached.
    """
    messages: List[Message] = [{"role": "system", "content": system_prompt}]
    messages.extend({"role": turn.role, "content": turn.content} for turn in history)

    if image_ref:
        messages.append(
            {
                "role": "user",
                "content": [
                    {"type": "image_url", "image_url": {"url": image_ref}},
                    {"type": "text", "text": description},
                ],
            }
        )
    else:
        messages.append({"role": "user", "content": description})

    return messages


def build_hero_prompt(asset: Asset) -> str:
    """
    Build the instruction sent to the image model alongside the product photo.
    """
    title = asset.get("title") or "商品"
    points = [p for p in (asset.get("selling_points") or []) if p]
    atmosphere = asset.get("atmosphere") or ""

    prompt = (
        "Turn the provided product photo into a high-quality e-commerce hero image. "
        f"Product: {title}. "
    )
    if points:
        prompt += f"Key selling points to convey visually: {', '.join(points)}. "
    if atmosphere:
        prompt += f"Campaign atmosphere: {atmosphere}. "
    prompt += (
        "Keep the product itself unchanged and clearly recognisable; "
        "clean studio lighting, modern commercial composition, "
        "background and props that match the atmosphere."
    )
    return prompt


def build_overlay_text(asset: Asset) -> str:
    """Title, up to three selling points and the atmosphere tag on one line."""
    sections = []
    title = asset.get("title")
    if title:
        sections.append(str(title))

    points = [str(p) for p in (asset.get("selling_points") or []) if p]
    if points:
        sections.append(OVERLAY_POINT_SEPARATOR.join(points[:OVERLAY_MAX_SELLING_POINTS]))

    atmosphere = asset.get("atmosphere")
    if atmosphere:
        sections.append(str(atmosphere))

    return OVERLAY_SECTION_SEPARATOR.join(sections)
