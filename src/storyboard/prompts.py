"""Prompt fragments and image prompt assembly."""

from .models import Scene

MAIN_CHARACTER_PROMPT = """
SUBJECT: 'Ifman' (A stylized mascot character).
STYLE: 2D Vector Line Art, Stylized Mascot.

HEAD & FACE (CRITICAL):
- HEAD SHAPE: A simple, perfectly round WHITE sphere.
- HAT: Traditional Korean 'Gat' (SOLID OPAQUE BLACK hat, NOT transparent).
- HAT STRAP: A single black string tied in a simple bow knot under the chin.
- FACE FEATURES:
  1. LEFT EYE POSITION: The letter 'I' (Capital 'I', Black Color).
  2. RIGHT EYE POSITION: The letter 'F' (Capital 'F', Black Color).
  3. MOUTH: A small RED INVERTED TRIANGLE located in the center below the letters.
- TEXT CONSISTENCY: The letters 'I' and 'F' must have CONSISTENT THICKNESS.

BODY: Minimalist white stick-figure body.
"""

NO_MAIN_CHARACTER_PROMPT = """
CRITICAL INSTRUCTION:
- Do NOT draw the 'Ifman' character.
- Draw the subject with NORMAL CARTOON EYES.
- ABSOLUTELY NO TEXT/LETTERS ON THE FACE.
"""

ART_STYLE_PROMPT = """
ART STYLE: A polished 2D vector illustration, modern animated series style.
LINES: Clean, smooth outlines.
COLORS: Vibrant saturated colors.
COPYRIGHT SAFETY:
- Use GENERIC devices (phones, cars) without brand logos.
- Do NOT depict famous real-world copyrighted characters.
TEXT RENDERING RULES:
- AVOID text in the background whenever possible (Clean visual).
- If text is absolutely necessary (signs, screens), use ENGLISH.
"""

SAFETY_PROMPT = """
Negative Constraints:
- NO photorealism, NO 3D render.
- NO copyrighted logos (Apple, Nike, etc).
- NO text on faces (EXCEPT for Ifman).
- NO Korean text (Use English if text is required).
- NO semi-transparent hat (Hat must be solid black).
"""

TEXT_INSTRUCTION = (
    "TEXT IN IMAGE: Avoid generating text if possible. "
    "If text is required for context, write it in ENGLISH."
)

# Appended on retries; simpler compositions get past filters and timeouts more often
RETRY_MODIFIER = ", minimal, simplified"


def build_prompt(scene: Scene, retry_mode: bool = False) -> str:
    """Assemble the full image generation prompt for a scene."""
    if scene.main_character_visible:
        character_def = f"CHARACTER: {MAIN_CHARACTER_PROMPT.strip()}"
    else:
        character_def = NO_MAIN_CHARACTER_PROMPT.strip()

    parts = [
        character_def,
        f"SCENE ACTION: {scene.english_prompt}",
        f"ORIGINAL CONTEXT: {scene.script_segment}",
        TEXT_INSTRUCTION,
        f"VISUAL STYLE: {ART_STYLE_PROMPT.strip()}",
        f"NEGATIVE CONSTRAINTS: {SAFETY_PROMPT.strip()}",
    ]
    prompt = "\n".join(parts)

    if retry_mode:
        prompt += RETRY_MODIFIER

    return prompt
