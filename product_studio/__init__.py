"""Product photo studio: styled product shots from raw photos via a generative image service."""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx

from .core import GenerationClient, Orchestrator
from .providers import GeminiClient
from .utils.config import Config, load_config
from .utils.messages import MessageCatalog

__version__ = "0.1.0"


@asynccontextmanager
async def open_studio(
    config: Optional[Config] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AsyncIterator[Orchestrator]:
    """
    Wire provider, client and orchestrator from configuration.
    
    Example:
        async with open_studio() as studio:
            artifact = await studio.generate(source, settings)
    """
    config = config or load_config()
    async with GeminiClient.from_config(config, transport=transport) as provider:
        yield Orchestrator.from_config(GenerationClient(provider), config)


__all__ = [
    "open_studio",
    "Orchestrator",
    "GenerationClient",
    "GeminiClient",
    "MessageCatalog",
    "__version__",
]
