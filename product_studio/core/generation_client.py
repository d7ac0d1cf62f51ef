"""Single-call wrapper around the generative image service."""

from typing import Any, Dict, List, Optional, Tuple

from .prompt_compiler import (
    AUXILIARY_LABEL,
    PRODUCT_LABEL,
    build_edit_instruction,
    compile_prompt,
)
from ..models.schemas import GeneratedArtifact, GenerationSettings, SourceImage
from ..providers.gemini import GeminiClient, image_part, text_part
from ..utils.errors import (
    EmptyEditInstruction,
    EmptyModelResponse,
    MissingCredential,
    ModelReturnedTextInsteadOfImage,
    OperationError,
)
from ..utils.images import DEFAULT_MIME_TYPE, base64_to_bytes, sniff_mime_type
from ..utils.logger import get_logger

logger = get_logger(__name__)


class GenerationClient:
    """
    Turns a source image (or a prior result) into a new generated image.
    
    Each call performs exactly one round trip to the service and never
    retries; failures surface as ``OperationError`` subclasses. No state
    is kept between calls.
    """
    
    def __init__(self, provider: GeminiClient):
        """
        Initialize generation client.
        
        Args:
            provider: Initialized Gemini API client
        """
        self.provider = provider
    
    async def generate(
        self,
        source: SourceImage,
        settings: GenerationSettings,
        auxiliary: Optional[SourceImage] = None,
    ) -> GeneratedArtifact:
        """
        Generate a styled product image for one source image.
        
        Args:
            source: Product photo
            settings: Styling settings
            auxiliary: Optional photo of a person to composite the product onto;
                only sent when ``settings.use_auxiliary_model`` is on
            
        Returns:
            New GeneratedArtifact for ``source.id``
            
        Raises:
            MissingCredential: If no API key is configured
            OperationError: Any classified service or content failure
        """
        self._require_credential()
        
        if not settings.use_auxiliary_model:
            auxiliary = None
        
        prompt = compile_prompt(settings, has_auxiliary_model_image=auxiliary is not None)
        parts = self.assemble_parts(source, prompt, auxiliary)
        
        logger.info(
            "Generating product image",
            extra={
                "source_id": source.id,
                "has_auxiliary": auxiliary is not None,
                "interaction": settings.model_interaction_mode.value if auxiliary else None,
                "source_bytes": len(source.image_bytes),
            }
        )
        
        image_bytes, mime_type = await self._call(parts, source_id=source.id)
        
        return GeneratedArtifact.for_generation(
            source.id,
            image_bytes=image_bytes,
            mime_type=mime_type,
            source_name=source.name,
            prompt_used=prompt,
        )
    
    async def refine(self, prior: GeneratedArtifact, edit_instruction: str) -> GeneratedArtifact:
        """
        Apply a free-text edit to a previously generated image.
        
        Args:
            prior: Current artifact to edit
            edit_instruction: User's requested change
            
        Returns:
            New GeneratedArtifact for the same source
            
        Raises:
            EmptyEditInstruction: If the instruction is blank
            MissingCredential: If no API key is configured
            OperationError: Any classified service or content failure
        """
        if not edit_instruction or not edit_instruction.strip():
            raise EmptyEditInstruction()
        self._require_credential()
        
        prompt = build_edit_instruction(edit_instruction)
        parts = [image_part(prior.image_bytes, prior.mime_type), text_part(prompt)]
        
        logger.info(
            "Refining generated image",
            extra={
                "source_id": prior.source_id,
                "artifact_id": prior.id,
                "instruction_length": len(edit_instruction),
            }
        )
        
        image_bytes, mime_type = await self._call(parts, source_id=prior.source_id)
        
        return GeneratedArtifact.for_edit(
            prior,
            image_bytes=image_bytes,
            mime_type=mime_type,
            prompt_used=prompt,
        )
    
    @staticmethod
    def assemble_parts(
        source: SourceImage,
        prompt: str,
        auxiliary: Optional[SourceImage] = None,
    ) -> List[Dict[str, Any]]:
        """
        Order request parts so the service can tell the images apart.
        
        With an auxiliary image: [label, auxiliary, label, product, prompt];
        otherwise: [product, prompt].
        """
        parts: List[Dict[str, Any]] = []
        if auxiliary is not None:
            parts.append(text_part(AUXILIARY_LABEL))
            parts.append(image_part(auxiliary.image_bytes, auxiliary.mime_type))
            parts.append(text_part(PRODUCT_LABEL))
        parts.append(image_part(source.image_bytes, source.mime_type))
        parts.append(text_part(prompt))
        return parts
    
    @staticmethod
    def extract_image(response: Dict[str, Any]) -> Tuple[bytes, str]:
        """
        Pull the image payload out of a service response.
        
        An image part wins over any text. Text without an image means the
        model declined or explained instead of drawing.
        
        Raises:
            ModelReturnedTextInsteadOfImage: Only text came back
            EmptyModelResponse: Neither image nor text came back
        """
        candidates = response.get("candidates") or []
        first = candidates[0] if candidates and isinstance(candidates[0], dict) else {}
        parts = (first.get("content") or {}).get("parts") or []
        
        for part in parts:
            inline = part.get("inlineData") or part.get("inline_data")
            if inline and inline.get("data"):
                try:
                    image_bytes = base64_to_bytes(inline["data"])
                except ValueError:
                    raise EmptyModelResponse(detail="undecodable inline image data")
                mime_type = inline.get("mimeType") or inline.get("mime_type")
                return image_bytes, mime_type or sniff_mime_type(image_bytes, DEFAULT_MIME_TYPE)
        
        for part in parts:
            text = part.get("text")
            if text and text.strip():
                raise ModelReturnedTextInsteadOfImage(text.strip())
        
        feedback = response.get("promptFeedback") or {}
        reason = feedback.get("blockReason") or first.get("finishReason")
        raise EmptyModelResponse(detail=reason)
    
    async def _call(self, parts: List[Dict[str, Any]], source_id: str) -> Tuple[bytes, str]:
        try:
            response = await self.provider.generate_content(parts)
            image_bytes, mime_type = self.extract_image(response)
        except OperationError as e:
            logger.error(
                f"Generation failed for {source_id}",
                extra={
                    "source_id": source_id,
                    "error_code": e.code.value,
                    "error": str(e),
                }
            )
            raise
        
        logger.info(
            f"Image generated for {source_id}",
            extra={
                "source_id": source_id,
                "mime_type": mime_type,
                "image_size_kb": round(len(image_bytes) / 1024, 1),
            }
        )
        return image_bytes, mime_type
    
    def _require_credential(self):
        if not self.provider.has_credential:
            raise MissingCredential()
