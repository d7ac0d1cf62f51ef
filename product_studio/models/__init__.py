"""Data models and schemas for the product studio."""

from .schemas import (
    SourceImage,
    Watermark,
    GenerationSettings,
    GeneratedArtifact,
    BatchProgress,
    BatchItemResult,
    BatchReport,
    PreviewResult,
    download_filename,
)
from .enums import (
    ModelInteraction,
    WatermarkPosition,
    OrchestratorState,
    BatchItemStatus,
    ErrorCode,
)

__all__ = [
    "SourceImage",
    "Watermark",
    "GenerationSettings",
    "GeneratedArtifact",
    "BatchProgress",
    "BatchItemResult",
    "BatchReport",
    "PreviewResult",
    "download_filename",
    "ModelInteraction",
    "WatermarkPosition",
    "OrchestratorState",
    "BatchItemStatus",
    "ErrorCode",
]
