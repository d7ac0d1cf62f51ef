"""Pytest configuration and shared fixtures."""

import asyncio
from io import BytesIO
from typing import Dict, List, Optional, Tuple

import pytest
from PIL import Image

from product_studio.models.schemas import GeneratedArtifact, GenerationSettings, SourceImage
from product_studio.utils.images import bytes_to_base64


def make_image_bytes(
    size: Tuple[int, int] = (64, 48),
    color=(200, 30, 30),
    mode: str = "RGB",
    fmt: str = "PNG",
) -> bytes:
    """Encode a solid-color image."""
    buffer = BytesIO()
    Image.new(mode, size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def image_response(image_bytes: bytes, mime_type: str = "image/png", text: Optional[str] = None) -> dict:
    """A generateContent response body carrying one image (and optional text)."""
    parts = []
    if text is not None:
        parts.append({"text": text})
    parts.append({"inlineData": {"mimeType": mime_type, "data": bytes_to_base64(image_bytes)}})
    return {"candidates": [{"content": {"role": "model", "parts": parts}, "finishReason": "STOP"}]}


def text_response(text: str) -> dict:
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


class ScriptedProvider:
    """Stands in for GeminiClient; replays queued responses or errors."""
    
    def __init__(self, responses: Optional[List] = None, api_key: Optional[str] = "test-key"):
        self.api_key = api_key
        self.responses = list(responses or [])
        self.calls: List[List[dict]] = []
    
    @property
    def has_credential(self) -> bool:
        return bool(self.api_key)
    
    async def generate_content(self, parts):
        self.calls.append(parts)
        outcome = self.responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeGenerationClient:
    """
    Stands in for GenerationClient in orchestrator tests.
    
    ``outcomes`` maps a source id to a queue of exceptions or ``None``
    (success). An optional ``gate`` event holds every call until set.
    """
    
    def __init__(self, outcomes: Optional[Dict[str, List]] = None):
        self.outcomes = {key: list(value) for key, value in (outcomes or {}).items()}
        self.calls: List[Tuple[str, str]] = []
        self.gate: Optional[asyncio.Event] = None
    
    def _next(self, key: str):
        queue = self.outcomes.get(key)
        return queue.pop(0) if queue else None
    
    async def generate(self, source, settings, auxiliary=None):
        self.calls.append(("generate", source.id))
        if self.gate is not None:
            await self.gate.wait()
        outcome = self._next(source.id)
        if isinstance(outcome, Exception):
            raise outcome
        return GeneratedArtifact.for_generation(
            source.id,
            image_bytes=f"{source.id}-{len(self.calls)}".encode(),
        )
    
    async def refine(self, prior, edit_instruction):
        self.calls.append(("refine", prior.source_id))
        if self.gate is not None:
            await self.gate.wait()
        outcome = self._next(f"refine:{prior.source_id}")
        if isinstance(outcome, Exception):
            raise outcome
        return GeneratedArtifact.for_edit(
            prior,
            image_bytes=prior.image_bytes + b"+edit",
            prompt_used=edit_instruction,
        )


@pytest.fixture
def settings():
    """Default generation settings."""
    return GenerationSettings()


@pytest.fixture
def product_png():
    return make_image_bytes((80, 60), (10, 120, 200))


@pytest.fixture
def sources(product_png):
    """Three product photos, in upload order."""
    return [
        SourceImage(id=f"shoe-{i}", image_bytes=product_png, mime_type="image/png", name=f"shoe-{i}.png")
        for i in range(1, 4)
    ]


@pytest.fixture
def model_photo():
    """Auxiliary photo of a person."""
    return SourceImage(
        id="model-1",
        image_bytes=make_image_bytes((60, 90), (230, 200, 180), fmt="JPEG"),
        mime_type="image/jpeg",
    )
