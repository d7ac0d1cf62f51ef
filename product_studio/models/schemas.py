"""Pydantic schemas for the studio data model."""

from pathlib import PurePath
from typing import List, Optional
from uuid import uuid4
from pydantic import BaseModel, Field
from datetime import datetime

from .enums import BatchItemStatus, ModelInteraction, WatermarkPosition

DEFAULT_BACKGROUND = "clean, seamless, bright white studio"
DEFAULT_LIGHTING = "bright, warm, natural afternoon sunlight"
DEFAULT_ANGLE = "straight-on front view"
ORIGINAL_ASPECT = "original"
DOWNLOAD_SUFFIX = "-studio.png"
DEFAULT_DOWNLOAD_STEM = "download"


def short_id() -> str:
    return uuid4().hex[:12]


def download_filename(name: Optional[str]) -> str:
    """File name for saving a finished image: the upload's stem plus ``-studio.png``."""
    stem = PurePath(name.strip()).stem if name and name.strip() else ""
    return f"{stem or DEFAULT_DOWNLOAD_STEM}{DOWNLOAD_SUFFIX}"


class SourceImage(BaseModel):
    """An uploaded image the studio borrows for the length of a request."""
    id: str
    image_bytes: bytes
    mime_type: str = "image/png"
    name: Optional[str] = None
    
    class Config:
        frozen = True


class Watermark(BaseModel):
    """Text burned into the final image."""
    text: str
    position: WatermarkPosition = WatermarkPosition.BOTTOM_RIGHT
    
    class Config:
        frozen = True


class GenerationSettings(BaseModel):
    """User-chosen styling for a generation request."""
    background_description: str = DEFAULT_BACKGROUND
    use_auxiliary_model: bool = False
    model_interaction_mode: ModelInteraction = ModelInteraction.WEARING
    lighting_description: str = DEFAULT_LIGHTING
    angle_description: str = DEFAULT_ANGLE
    watermark_text: str = ""
    watermark_position: WatermarkPosition = WatermarkPosition.BOTTOM_RIGHT
    target_aspect_tag: str = ORIGINAL_ASPECT
    
    class Config:
        frozen = True
        protected_namespaces = ()
    
    def watermark(self) -> Optional[Watermark]:
        """Watermark to apply, or None when no text is set."""
        if not self.watermark_text.strip():
            return None
        return Watermark(text=self.watermark_text, position=self.watermark_position)


class GeneratedArtifact(BaseModel):
    """The current generated image for one source image."""
    id: str
    source_id: str
    image_bytes: bytes
    mime_type: str = "image/png"
    source_name: Optional[str] = None
    prompt_used: str = ""
    created_at: datetime = Field(default_factory=datetime.utcnow)
    
    class Config:
        frozen = True
    
    @classmethod
    def for_generation(cls, source_id: str, **kwargs) -> "GeneratedArtifact":
        return cls(id=f"processed-{source_id}-{short_id()}", source_id=source_id, **kwargs)
    
    @classmethod
    def for_edit(cls, prior: "GeneratedArtifact", **kwargs) -> "GeneratedArtifact":
        kwargs.setdefault("source_name", prior.source_name)
        return cls(id=f"edited-{prior.id}-{short_id()}", source_id=prior.source_id, **kwargs)


class BatchProgress(BaseModel):
    """Attempts finished so far in a batch run."""
    completed: int = 0
    total: int = 0
    
    @property
    def done(self) -> bool:
        return self.completed >= self.total


class BatchItemResult(BaseModel):
    """Outcome of one source image in a batch."""
    source_id: str
    status: BatchItemStatus
    error: Optional[Exception] = None
    
    class Config:
        arbitrary_types_allowed = True


class BatchReport(BaseModel):
    """Final result of a batch run."""
    items: List[BatchItemResult] = Field(default_factory=list)
    progress: BatchProgress = Field(default_factory=BatchProgress)
    halted: bool = False
    halted_at: Optional[str] = None
    cancelled: bool = False
    
    def _with_status(self, status: BatchItemStatus) -> List[BatchItemResult]:
        return [item for item in self.items if item.status == status]
    
    @property
    def succeeded(self) -> List[BatchItemResult]:
        return self._with_status(BatchItemStatus.SUCCEEDED)
    
    @property
    def failed(self) -> List[BatchItemResult]:
        return self._with_status(BatchItemStatus.FAILED)
    
    @property
    def not_attempted(self) -> List[BatchItemResult]:
        return self._with_status(BatchItemStatus.NOT_ATTEMPTED)


class PreviewResult(BaseModel):
    """Image to display for a source, composited when possible."""
    image_bytes: bytes
    mime_type: str = "image/png"
    composited: bool = True
    error: Optional[Exception] = None
    filename: str = DEFAULT_DOWNLOAD_STEM + DOWNLOAD_SUFFIX
    
    class Config:
        arbitrary_types_allowed = True
