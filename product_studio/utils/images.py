"""Image byte helpers shared by the client and the compositor."""

import base64
from io import BytesIO
from PIL import Image, UnidentifiedImageError

from .errors import ImageDecodeError

DEFAULT_MIME_TYPE = "image/png"

_FORMAT_TO_MIME = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "WEBP": "image/webp",
    "GIF": "image/gif",
    "BMP": "image/bmp",
    "TIFF": "image/tiff",
}


def bytes_to_base64(image_bytes: bytes) -> str:
    """Encode image bytes as a base64 string."""
    return base64.b64encode(image_bytes).decode('utf-8')


def base64_to_bytes(base64_string: str) -> bytes:
    """
    Decode a base64 string, tolerating a ``data:`` URL prefix.
    
    Args:
        base64_string: Base64 encoded image or data URL
        
    Returns:
        Image bytes
    """
    if "," in base64_string:
        base64_string = base64_string.split(",", 1)[1]
    
    return base64.b64decode(base64_string)


def decode_image(image_bytes: bytes) -> Image.Image:
    """
    Decode image bytes into a fully loaded PIL image.
    
    Raises:
        ImageDecodeError: If the bytes are not a readable image
    """
    try:
        image = Image.open(BytesIO(image_bytes))
        image.load()
        return image
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageDecodeError(f"Failed to decode image: {e}")


def sniff_mime_type(image_bytes: bytes, fallback: str = DEFAULT_MIME_TYPE) -> str:
    """Best-effort MIME type from the image header."""
    try:
        image_format = Image.open(BytesIO(image_bytes)).format
    except (UnidentifiedImageError, OSError, ValueError):
        return fallback
    return _FORMAT_TO_MIME.get(image_format or "", fallback)
