"""Script analysis agent: splits a narrative script into storyboard shots."""

import json
import logging
from dataclasses import dataclass
from typing import Optional

from pydantic import ValidationError

from ..config import config
from ..errors import AnalysisError
from ..models import Scene, SceneDraft, Storyboard
from .base import BaseAgent

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are an expert storyboard artist obsessed with detailed shot breakdown.
Analyze the provided script and split it into the MAXIMUM possible number of granular visual scenes.

CRITICAL RULES FOR EXTREME GRANULARITY:
1. SPLIT EVERYTHING: Do not group actions or sentences.
   - If a sentence has two clauses, make two scenes.
   - If someone talks and then moves, make two scenes.
2. INSERT CUTS: Add insert shots (close-ups of hands, eyes, objects) and reaction shots
   (listener nodding, surprised face) between dialogues.
3. VISUAL PACING: Treat this as a slow-motion cinematic sequence. We need MORE frames than the text suggests.
4. QUANTITY GOAL: Aim for 1.5x to 2x the number of sentences in the script.

CONTEXTUAL CHARACTER LOGIC:
- The main narrator is 'Ifman' (a stick figure with a Korean hat).
- Do NOT include Ifman in every scene.
- If the script mentions a specific person, describe THAT person in a cartoon style and set
  main_character_visible to false.
- If the script focuses on an object, describe ONLY the object and set main_character_visible to false.
- Only set main_character_visible to true if Ifman is acting, talking or reacting in the scene.

Output valid JSON only, with no additional text or markdown formatting.
The JSON must be an array of objects with these keys:
- script_segment: the part of the original text (in its original language) or implied action for this shot.
- english_prompt: detailed English visual description of the action/setting (do not describe Ifman).
- main_character_visible: boolean."""

# Keys the model sometimes answers with instead of the requested ones
_KEY_ALIASES = {
    "scriptSegment": "script_segment",
    "englishPrompt": "english_prompt",
    "mainCharacterVisible": "main_character_visible",
}


@dataclass
class ScriptInput:
    """Input data for the script agent."""

    script: str
    max_scenes: Optional[int] = None


class ScriptAgent(BaseAgent[ScriptInput, list[SceneDraft]]):
    """Agent that turns raw script text into ordered scene drafts."""

    @property
    def name(self) -> str:
        return "ScriptAgent"

    @property
    def system_prompt(self) -> str:
        return SYSTEM_PROMPT

    async def analyze(self, script: str, max_scenes: Optional[int] = None) -> list[Scene]:
        """Analyze a script into numbered IDLE scenes.

        Raises:
            ValueError: If the script is empty.
            AnalysisError: If the model call or its response is unusable.
        """
        drafts = await self.run(ScriptInput(script=script, max_scenes=max_scenes))
        return Storyboard.from_drafts(drafts).scenes

    async def run(self, input_data: ScriptInput) -> list[SceneDraft]:
        if not input_data.script.strip():
            raise ValueError("Script text is empty")

        self._logger.info(f"Analyzing script ({len(input_data.script)} chars)")

        try:
            response = await self._create_message(
                prompt=input_data.script,
                temperature=0.4,
            )
        except AnalysisError:
            raise
        except Exception as e:
            raise AnalysisError(f"Script analysis request failed: {e}") from e

        drafts = self._parse_response(response)
        if not drafts:
            raise AnalysisError("Script analysis returned no scenes")

        limit = input_data.max_scenes or config.max_scenes
        if len(drafts) > limit:
            self._logger.warning(
                f"Analysis returned {len(drafts)} scenes; keeping the first {limit}"
            )
            drafts = drafts[:limit]

        self._logger.info(f"Found {len(drafts)} scenes")
        return drafts

    def _parse_response(self, response: str) -> list[SceneDraft]:
        """Parse Claude's response into scene drafts.

        Raises:
            AnalysisError: If the response is not a JSON array of valid scenes.
        """
        json_str = self._extract_json(response)

        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            self._logger.debug(f"Raw response: {response}")
            raise AnalysisError(f"Invalid JSON in response: {e}") from e

        items = data.get("scenes", data) if isinstance(data, dict) else data
        if not isinstance(items, list):
            raise AnalysisError("Response does not contain a scenes array")

        drafts: list[SceneDraft] = []
        for i, item in enumerate(items):
            if not isinstance(item, dict):
                raise AnalysisError(f"Scene {i + 1} is not an object")
            fields = {_KEY_ALIASES.get(key, key): value for key, value in item.items()}
            if fields.get("main_character_visible") is None:
                fields.pop("main_character_visible", None)
            try:
                drafts.append(SceneDraft(**fields))
            except ValidationError as e:
                raise AnalysisError(f"Scene {i + 1} is invalid: {e}") from e

        return drafts

    def _extract_json(self, response: str) -> str:
        """Extract JSON from a response that may contain markdown or other text."""
        if "```" in response:
            start = response.find("```") + 3
            # Skip a language tag such as ```json
            newline = response.find("\n", start)
            if newline != -1 and response[start:newline].strip().isalpha():
                start = newline + 1
            end = response.find("```", start)
            if end > start:
                return response[start:end].strip()

        # Try to find raw JSON array or object
        for start_char, end_char in [("[", "]"), ("{", "}")]:
            start = response.find(start_char)
            if start == -1:
                continue
            depth = 0
            in_string = False
            escaped = False
            for i, char in enumerate(response[start:], start):
                if in_string:
                    if escaped:
                        escaped = False
                    elif char == "\\":
                        escaped = True
                    elif char == '"':
                        in_string = False
                    continue
                if char == '"':
                    in_string = True
                elif char == start_char:
                    depth += 1
                elif char == end_char:
                    depth -= 1
                    if depth == 0:
                        return response[start:i + 1]

        return response.strip()
