"""Core business logic components."""

from .prompt_compiler import compile_prompt, build_edit_instruction
from .generation_client import GenerationClient
from .compositor import compose, resolve_aspect_ratio
from .preview import render_preview
from .orchestrator import Orchestrator

__all__ = [
    "compile_prompt",
    "build_edit_instruction",
    "GenerationClient",
    "compose",
    "resolve_aspect_ratio",
    "render_preview",
    "Orchestrator",
]
