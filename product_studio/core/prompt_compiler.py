"""
Compilation of generation settings into instructions for the image model.

Everything here is pure: the same settings always yield the same text and
nothing can fail, so prompt wording can be tested without the network.
"""

from ..models.enums import ModelInteraction
from ..models.schemas import GenerationSettings

AUXILIARY_LABEL = "Model Image:"
PRODUCT_LABEL = "Product Image:"

TWO_ARMS_CLAUSE = (
    "CRITICAL: the final image must show the person with EXACTLY TWO ARMS. "
    "A third arm, or leftover parts of a replaced arm, is a failed result. "
    "Verify that the person has exactly two arms before returning the image; "
    "if not, discard it and redo the edit."
)

COMPOSITE_PREAMBLE = (
    "You are an expert photo retoucher producing hyper-realistic composite images. "
    "Edit the 'Model Image' so that the person in it is shown with the product "
    "from the 'Product Image'."
)

COMPOSITE_CONSTRAINTS = (
    "- Output a high-resolution, professional photograph.\n"
    "- Match the lighting on the product to the lighting of the 'Model Image'.\n"
    "- Keep the person's identity (face, hair, body type) exactly as in the 'Model Image'.\n"
    "- Ignore the original background of the 'Product Image' entirely."
)

INTERACTION_INSTRUCTIONS = {
    ModelInteraction.WEARING: (
        "The person from the 'Model Image' is now wearing the product "
        "(clothing or accessory) from the 'Product Image'. Keep the background, "
        "overall pose and lighting of the 'Model Image'."
    ),
    ModelInteraction.HOLDING: (
        "Create one photorealistic image in which the person from the 'Model Image' "
        "holds the product from the 'Product Image' in one hand.\n"
        f"{TWO_ARMS_CLAUSE}\n"
        "Scene for the final image:\n"
        "- Same person as the 'Model Image': face, hair, clothing and body unchanged.\n"
        "- Same background and lighting as the 'Model Image'.\n"
        "- Replace exactly ONE of the original arms with a new arm in a holding pose "
        "that grips the product.\n"
        "- The other original arm stays as it is, in a natural pose.\n"
        "- Blend the product and the new arm into the scene, matching light, "
        "shadows and color grade.\n"
        "Do NOT add a third arm. Do NOT leave remnants of the replaced arm."
    ),
    ModelInteraction.POSING: (
        "The person from the 'Model Image' stands or poses next to the product "
        "from the 'Product Image', giving a sense of its scale. Keep the background, "
        "the person's full pose and the lighting of the 'Model Image'."
    ),
}

SYNTHETIC_MODEL_CLAUSE = (
    "- If the product is clothing, an accessory or jewelry, show it on a suitable, "
    "photorealistic human model so it is clear how it is worn. Pose the model "
    "naturally to fit the product and background, and do not show the model's face."
)

EDIT_TEMPLATE = (
    "Edit the provided image according to this request: \"{instruction}\".\n"
    "- Apply the change subtly and keep the photorealism of the original.\n"
    "- Preserve the composition unless the request asks otherwise.\n"
    "- Return only the edited image."
)


def compile_prompt(settings: GenerationSettings, has_auxiliary_model_image: bool) -> str:
    """
    Build the instruction text for a generation request.
    
    With a usable auxiliary model image the result is a composite-edit
    instruction for the chosen interaction; otherwise it is a standalone
    product-photography instruction driven by background, lighting and angle.
    
    Args:
        settings: Generation settings
        has_auxiliary_model_image: Whether an auxiliary image accompanies the request
        
    Returns:
        Non-empty instruction text
    """
    if settings.use_auxiliary_model and has_auxiliary_model_image:
        return _composite_prompt(settings)
    return _product_prompt(settings)


def _composite_prompt(settings: GenerationSettings) -> str:
    interaction = INTERACTION_INSTRUCTIONS.get(
        settings.model_interaction_mode,
        INTERACTION_INSTRUCTIONS[ModelInteraction.WEARING],
    )
    return f"{COMPOSITE_PREAMBLE}\n{interaction}\n{COMPOSITE_CONSTRAINTS}"


def _product_prompt(settings: GenerationSettings) -> str:
    lines = [
        "Analyze the provided image and identify the main product. Create a "
        "photorealistic, high-resolution professional product photograph of it.",
        "- IMPORTANT: remove the original background and any distractions completely.",
        f"- Place the product in a new, clean scene with a '{settings.background_description}' "
        "style background.",
        f"- Lighting: '{settings.lighting_description}'.",
        f"- Camera angle: '{settings.angle_description}'.",
        "- The final image must be centered, well lit and of commercial quality.",
    ]
    if settings.use_auxiliary_model:
        lines.append(SYNTHETIC_MODEL_CLAUSE)
    return "\n".join(lines)


def build_edit_instruction(instruction: str) -> str:
    """Wrap a user's edit request for a single-image refinement call."""
    return EDIT_TEMPLATE.format(instruction=instruction.strip())
