import base64
import io
import re
from pathlib import Path
from typing import List, Optional, Tuple

import httpx
from PIL import Image, ImageDraw, ImageFont

from .images import load_source_image


CANVAS_SIDE = 1024
BORDER_MARGIN = 24
BORDER_WIDTH = 8
FONT_SIZE = 40
TEXT_BOTTOM_PADDING = 56
LINE_SPACING = 10
DEFAULT_ACCENT = "#2563EB"

Color = Tuple[int, int, int]


def compose_locally(
    source_image_ref: str,
    overlay_text: str,
    accent_color: str = DEFAULT_ACCENT,
    http_client: Optional[httpx.Client] = None,
) -> str:
    """
    Network-free hero image: the product photo centred on a white square,
    an accent border and the overlay text near the bottom.

    Returns a PNG `data:` URL. Raises `ImageLoadError` if the source image
    cannot be loaded; nothing else can fail here.
    """
    source = load_source_image(source_image_ref, http_client=http_client)
    canvas = composite_hero(source, overlay_text, accent_color)
    return to_data_url(canvas)


def composite_hero(img: Image.Image, overlay_text: str, accent_color: str = DEFAULT_ACCENT) -> Image.Image:
    side = CANVAS_SIDE
    accent = _parse_color(accent_color)
    canvas = Image.new("RGB", (side, side), color=(255, 255, 255))

    # Uniform scale keeps the aspect ratio; the image may be upscaled.
    scale = min(side / img.width, side / img.height)
    width = max(1, round(img.width * scale))
    height = max(1, round(img.height * scale))
    scaled = img.resize((width, height), Image.LANCZOS)
    canvas.paste(scaled, ((side - width) // 2, (side - height) // 2))

    draw = ImageDraw.Draw(canvas)
    draw.rectangle(
        [BORDER_MARGIN, BORDER_MARGIN, side - 1 - BORDER_MARGIN, side - 1 - BORDER_MARGIN],
        outline=accent,
        width=BORDER_WIDTH,
    )

    if overlay_text:
        font = _load_font(size=FONT_SIZE)
        max_width = side - 2 * (BORDER_MARGIN + BORDER_WIDTH + 24)
        lines = _wrap_text(draw, overlay_text, font, max_width)
        line_height = _line_height(draw, font)
        block_height = len(lines) * line_height + (len(lines) - 1) * LINE_SPACING
        y = side - BORDER_MARGIN - TEXT_BOTTOM_PADDING - block_height
        for line in lines:
            line_width = draw.textlength(line, font=font)
            draw.text(((side - line_width) / 2, y), line, font=font, fill=accent)
            y += line_height + LINE_SPACING

    return canvas


def to_data_url(img: Image.Image) -> str:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


def _line_height(draw: ImageDraw.ImageDraw, font: ImageFont.ImageFont) -> int:
    # Same height for every line, measured on a tall CJK + latin sample.
    box = draw.textbbox((0, 0), "国Ag", font=font)
    return box[3] - box[1]


def _wrap_text(
    draw: ImageDraw.ImageDraw, text: str, font: ImageFont.ImageFont, max_width: int
) -> List[str]:
    # Latin words stay whole; CJK characters can break anywhere.
    tokens = re.findall(r"[A-Za-z0-9'\-]+|\s+|.", text)
    lines: List[str] = []
    current = ""
    for token in tokens:
        test = current + token
        if draw.textlength(test.strip(), font=font) <= max_width or not current.strip():
            current = test
        else:
            lines.append(current.strip())
            current = token.lstrip()
    if current.strip():
        lines.append(current.strip())
    return lines


def _parse_color(color_str: str) -> Color:
    """
    Parse hex color strings like '#FF0000' or 'FF0000' into RGB tuple.
    Falls back to the default accent if parsing fails.
    """
    s = (color_str or "").strip().lstrip("#")
    if len(s) == 3:
        s = "".join(ch * 2 for ch in s)
    if len(s) == 6:
        try:
            return (int(s[0:2], 16), int(s[2:4], 16), int(s[4:6], 16))
        except ValueError:
            pass
    return (37, 99, 235)  # blue-600


def _load_font(size: int) -> ImageFont.ImageFont:
    """
    Load a bold TrueType font that can render Chinese.
    Prefers fonts from the project's fonts/ folder, then common system fonts,
    then Pillow's bundled default.
    """
    project_root = Path(__file__).parent.parent
    fonts_dir = project_root / "fonts"

    font_files: List[str] = []
    if fonts_dir.exists():
        font_files.extend(str(p) for p in sorted(fonts_dir.glob("*.tt[fc]")))
        font_files.extend(str(p) for p in sorted(fonts_dir.glob("*.otf")))

    font_files.extend(
        [
            # Linux
            "/usr/share/fonts/opentype/noto/NotoSansCJK-Bold.ttc",
            "/usr/share/fonts/noto-cjk/NotoSansCJK-Bold.ttc",
            "/usr/share/fonts/truetype/wqy/wqy-zenhei.ttc",
            # macOS
            "/System/Library/Fonts/PingFang.ttc",
            "/System/Library/Fonts/STHeiti Medium.ttc",
            # Windows
            "C:/Windows/Fonts/msyhbd.ttc",
            "C:/Windows/Fonts/simhei.ttf",
            # Latin-only fallbacks
            "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
            "/Library/Fonts/Arial Bold.ttf",
        ]
    )

    for font_file in font_files:
        try:
            return ImageFont.truetype(font_file, size=size)
        except OSError:
            continue

    return ImageFont.load_default(size=size)
