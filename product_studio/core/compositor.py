"""
Deterministic post-processing: center-crop to a publishing aspect ratio and
burn in a legible text watermark.

``compose`` is a pure function of its inputs, so previews can be recomputed
on every settings change.
"""

from io import BytesIO
from pathlib import Path
from typing import Mapping, NamedTuple, Optional, Tuple

from PIL import Image, ImageDraw, ImageFilter, ImageFont

from ..models.enums import WatermarkPosition
from ..models.schemas import ORIGINAL_ASPECT, Watermark
from ..utils.config import DEFAULT_ASPECT_PRESETS
from ..utils.errors import RenderSurfaceUnavailable
from ..utils.images import decode_image
from ..utils.logger import get_logger

logger = get_logger(__name__)

OUTPUT_FORMAT = "PNG"
OUTPUT_MIME_TYPE = "image/png"

SHADOW_FILL = (0, 0, 0, 178)
TEXT_FILL = (255, 255, 255, 242)
STROKE_FILL = (0, 0, 0, 204)

# Modes the PNG encoder accepts as-is
PNG_MODES = {"1", "L", "LA", "I", "I;16", "P", "RGB", "RGBA"}

FONT_CANDIDATES = (
    "assets/fonts/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf",
    "/Library/Fonts/Arial Bold.ttf",
    "/System/Library/Fonts/Supplemental/Arial Bold.ttf",
    "C:\\Windows\\Fonts\\arialbd.ttf",
)


class WatermarkMetrics(NamedTuple):
    padding: int
    font_size: int
    shadow_offset: int
    stroke_width: int


def resolve_aspect_ratio(
    tag: Optional[str],
    presets: Optional[Mapping[str, str]] = None,
) -> Optional[Tuple[int, int]]:
    """
    Resolve a target tag to a ``(width, height)`` ratio.
    
    The tag may name a preset (``"instagram-story"``) or be a literal
    ``"W:H"``. ``"original"``, unknown tags and malformed ratios all mean
    "do not crop" and return None.
    """
    presets = DEFAULT_ASPECT_PRESETS if presets is None else presets
    value = (tag or "").strip()
    value = presets.get(value, value)
    
    if not value or value == ORIGINAL_ASPECT or ":" not in value:
        return None
    
    left, right = value.split(":", 1)
    try:
        width, height = int(left), int(right)
    except ValueError:
        return None
    
    if width <= 0 or height <= 0:
        return None
    return width, height


def crop_box(size: Tuple[int, int], ratio: Optional[Tuple[int, int]]) -> Tuple[int, int, int, int]:
    """
    Centered crop region matching ``ratio`` for an image of ``size``.
    
    Only the longer dimension (relative to the ratio) is reduced; the image
    is never padded or upscaled.
    
    Returns:
        (left, top, right, bottom)
    """
    width, height = size
    if ratio is None:
        return 0, 0, width, height
    
    ratio_w, ratio_h = ratio
    # Sizes an earlier rounded crop produced count as matching
    if round(height * ratio_w / ratio_h) == width or round(width * ratio_h / ratio_w) == height:
        return 0, 0, width, height
    
    if width * ratio_h > height * ratio_w:
        crop_w = max(1, min(width, round(height * ratio_w / ratio_h)))
        left = (width - crop_w) // 2
        return left, 0, left + crop_w, height
    
    if width * ratio_h < height * ratio_w:
        crop_h = max(1, min(height, round(width * ratio_h / ratio_w)))
        top = (height - crop_h) // 2
        return 0, top, width, top + crop_h
    
    return 0, 0, width, height


def watermark_metrics(size: Tuple[int, int]) -> WatermarkMetrics:
    """Padding, font size, shadow offset and outline width for a canvas."""
    width, height = size
    font_size = round(max(12, min(width, height) * 0.04))
    return WatermarkMetrics(
        padding=round(max(10, width * 0.02)),
        font_size=font_size,
        shadow_offset=round(max(1, font_size * 0.08)),
        stroke_width=round(max(1, font_size * 0.04)),
    )


def text_origin(
    position: WatermarkPosition,
    canvas_size: Tuple[int, int],
    text_bbox: Tuple[int, int, int, int],
    padding: int,
) -> Tuple[int, int]:
    """
    Where to draw text so its box sits ``padding`` px inside the chosen edges.
    
    ``text_bbox`` is the box measured with the text drawn at (0, 0).
    """
    width, height = canvas_size
    left, top, right, bottom = text_bbox
    horizontal = position.value.split("-", 1)[1]
    vertical = position.value.split("-", 1)[0]
    
    if horizontal == "left":
        x = padding - left
    elif horizontal == "center":
        x = round(width / 2 - (left + right) / 2)
    else:
        x = width - padding - right
    
    if vertical == "top":
        y = padding - top
    else:
        y = height - padding - bottom
    
    return x, y


def load_font(size: int):
    """Bold TrueType font at ``size`` px, falling back to Pillow's bundled font."""
    for candidate in FONT_CANDIDATES:
        if Path(candidate).exists():
            try:
                return ImageFont.truetype(candidate, size=size)
            except OSError:
                continue
    try:
        return ImageFont.load_default(size=size)
    except (TypeError, OSError):
        # Pillow built without FreeType only has the fixed bitmap font
        return ImageFont.load_default()


def compose(
    image_bytes: bytes,
    target_aspect_tag: Optional[str],
    watermark: Optional[Watermark] = None,
    presets: Optional[Mapping[str, str]] = None,
) -> bytes:
    """
    Crop an image to a target aspect ratio and optionally watermark it.
    
    Args:
        image_bytes: Encoded source image
        target_aspect_tag: Preset name, ``"W:H"`` or ``"original"``
        watermark: Text and position; ignored when the text is blank
        presets: Preset name -> ratio mapping (defaults to the built-in presets)
        
    Returns:
        PNG-encoded result whose size equals the crop region
        
    Raises:
        ImageDecodeError: If ``image_bytes`` is not a readable image
        RenderSurfaceUnavailable: If the result cannot be drawn or encoded
    """
    image = decode_image(image_bytes)
    ratio = resolve_aspect_ratio(target_aspect_tag, presets)
    box = crop_box(image.size, ratio)
    
    if box != (0, 0) + image.size:
        image = image.crop(box)
    
    if image.mode not in PNG_MODES:
        image = image.convert("RGBA" if "A" in image.getbands() else "RGB")
    
    if watermark is not None and watermark.text.strip():
        image = _draw_watermark(image, watermark)
    
    buffer = BytesIO()
    try:
        image.save(buffer, format=OUTPUT_FORMAT)
    except (OSError, ValueError) as e:
        raise RenderSurfaceUnavailable(f"Failed to encode composited image: {e}")
    
    logger.debug(
        "Composited image",
        extra={
            "aspect_tag": target_aspect_tag,
            "crop_box": list(box),
            "watermarked": watermark is not None and bool(watermark.text.strip()),
        }
    )
    return buffer.getvalue()


def _draw_watermark(image: Image.Image, watermark: Watermark) -> Image.Image:
    """Shadow, then outlined near-white text, composited over ``image``."""
    has_alpha = image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info)
    
    try:
        base = image.convert("RGBA")
        metrics = watermark_metrics(base.size)
        font = load_font(metrics.font_size)
        
        shadow = Image.new("RGBA", base.size, (0, 0, 0, 0))
        text_layer = Image.new("RGBA", base.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(text_layer)
        
        bbox = draw.textbbox((0, 0), watermark.text, font=font, stroke_width=metrics.stroke_width)
        x, y = text_origin(watermark.position, base.size, bbox, metrics.padding)
        
        ImageDraw.Draw(shadow).text(
            (x + metrics.shadow_offset, y + metrics.shadow_offset),
            watermark.text,
            font=font,
            fill=SHADOW_FILL,
        )
        shadow = shadow.filter(ImageFilter.GaussianBlur(radius=max(1, metrics.shadow_offset / 2)))
        
        draw.text(
            (x, y),
            watermark.text,
            font=font,
            fill=TEXT_FILL,
            stroke_width=metrics.stroke_width,
            stroke_fill=STROKE_FILL,
        )
        
        result = Image.alpha_composite(Image.alpha_composite(base, shadow), text_layer)
    except (OSError, ValueError, MemoryError) as e:
        raise RenderSurfaceUnavailable(f"Failed to draw watermark: {e}")
    
    return result if has_alpha else result.convert("RGB")
