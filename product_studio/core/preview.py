"""Preview rendering that never fails the whole preview."""

from typing import Mapping, Optional

from .compositor import OUTPUT_MIME_TYPE, compose
from ..models.schemas import GeneratedArtifact, GenerationSettings, PreviewResult, download_filename
from ..utils.errors import ImageDecodeError, RenderSurfaceUnavailable
from ..utils.logger import get_logger

logger = get_logger(__name__)


def render_preview(
    artifact: GeneratedArtifact,
    settings: GenerationSettings,
    presets: Optional[Mapping[str, str]] = None,
) -> PreviewResult:
    """
    Composite a generated image for display.
    
    Compositor failures fall back to the unprocessed generated image with
    the error attached, so the caller can still show something. The result
    carries the ``<upload name>-studio.png`` file name to save it under.
    """
    filename = download_filename(artifact.source_name)

    try:
        composed = compose(
            artifact.image_bytes,
            settings.target_aspect_tag,
            settings.watermark(),
            presets=presets,
        )
    except (ImageDecodeError, RenderSurfaceUnavailable) as e:
        logger.warning(
            "Post-processing failed, showing unprocessed image",
            extra={
                "artifact_id": artifact.id,
                "source_id": artifact.source_id,
                "error_code": e.code.value,
                "error": str(e),
            }
        )
        return PreviewResult(
            image_bytes=artifact.image_bytes,
            mime_type=artifact.mime_type,
            composited=False,
            error=e,
            filename=filename,
        )
    
    return PreviewResult(image_bytes=composed, mime_type=OUTPUT_MIME_TYPE, filename=filename)
