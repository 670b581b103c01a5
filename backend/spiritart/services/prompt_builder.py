"""
SpiritArt Backend: Prompt Composition
======================================

Builds the image-generation prompt from the vision description, a style key
and the user's own instruction:

    I want you to create a Studio Ghibli style artwork by Hayao Miyazaki
    based on this image description. The image shows: <description> <style
    template>. <user prompt>.

The image model caps prompt length. Overflow past `max_length` is always
measured and logged; the prompt is only cut when `truncate` is set.
"""

import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

PREAMBLE = (
    "I want you to create a Studio Ghibli style artwork by Hayao Miyazaki "
    "based on this image description. "
)

DEFAULT_STYLE = "ghibli-nature"
DEFAULT_USER_PROMPT = "Transform this image into Studio Ghibli style"

STYLE_GUIDE = {
    "ghibli-nature": (
        "Create a Studio Ghibli artwork in Hayao Miyazaki's distinctive style showing the "
        "exact same scene with hand-painted textures, soft pastel colors, and dreamy "
        'atmosphere like in "My Neighbor Totoro" or "Princess Mononoke"'
    ),
    "ghibli-character": (
        "Create a Studio Ghibli artwork in Hayao Miyazaki's distinctive style showing the "
        "exact same scene with simple rounded features, expressive eyes, and soft colors "
        'like in "Spirited Away" or "Kiki\'s Delivery Service"'
    ),
    "ghibli-cityscape": (
        "Create a Studio Ghibli artwork in Hayao Miyazaki's distinctive style showing the "
        "exact same scene with detailed architecture, warm lighting, and nostalgic "
        'atmosphere like in "Whisper of the Heart" or "From Up On Poppy Hill"'
    ),
    "ghibli-fantasy": (
        "Create a Studio Ghibli artwork in Hayao Miyazaki's distinctive style showing the "
        "exact same scene with magical elements, whimsical creatures, and ethereal "
        'lighting like in "Spirited Away" or "Howl\'s Moving Castle"'
    ),
}


@dataclass(frozen=True)
class ComposedPrompt:
    text: str
    overflow: int
    truncated: bool = False


def style_template(style: Optional[str]) -> str:
    """Template for `style`; unknown or missing keys get the default style."""
    return STYLE_GUIDE.get(style or DEFAULT_STYLE, STYLE_GUIDE[DEFAULT_STYLE])


def compose_prompt(
    description: str,
    style: Optional[str] = None,
    user_prompt: Optional[str] = None,
    max_length: int = 950,
    truncate: bool = False,
) -> ComposedPrompt:
    text = PREAMBLE
    if description:
        text += f"The image shows: {description} "
    text += f"{style_template(style)}. "
    if user_prompt and user_prompt.strip():
        text += f"{user_prompt}. "

    overflow = max(0, len(text) - max_length)
    if not overflow:
        return ComposedPrompt(text=text, overflow=0)

    if not truncate:
        logger.info("Prompt too long (%d chars, limit %d); sending as-is", len(text), max_length)
        return ComposedPrompt(text=text, overflow=overflow)

    logger.info("Prompt too long (%d chars). Truncating to %d chars.", len(text), max_length)
    return ComposedPrompt(text=text[: max_length - 3] + "...", overflow=overflow, truncated=True)
