import asyncio
import time

import anthropic
from pydantic import ValidationError

from agent.prompts import SYSTEM_PROMPT, build_user_message
from core.recipe_models import Recipe

RECIPE_TOOL_NAME = "recipe_output"
MAX_TOKENS = 4096


class RecipeParseError(Exception):
    pass


class RecipeTooComplexError(RecipeParseError):
    pass


class RecipeParser:
    def __init__(self, api_key: str, model: str = "claude-sonnet-4-5-20250929", client=None):
        self.client = client or anthropic.Anthropic(api_key=api_key, timeout=120.0)
        self.model = model

    def _tool(self) -> dict:
        return {
            "name": RECIPE_TOOL_NAME,
            "description": "Output the parsed recipe in structured format",
            "input_schema": Recipe.model_json_schema(),
        }

    def parse_transcript(self, transcript: str) -> Recipe:
        """
        Single forced tool call; the tool input is validated against Recipe.
        anthropic.RateLimitError is left to the caller.
        """
        start = time.time()
        response = self.client.messages.create(
            model=self.model,
            max_tokens=MAX_TOKENS,
            system=SYSTEM_PROMPT,
            messages=[{"role": "user", "content": build_user_message(transcript)}],
            tools=[self._tool()],
            tool_choice={"type": "tool", "name": RECIPE_TOOL_NAME},
        )

        if response.stop_reason == "max_tokens":
            print(f"[PARSER] WARNING: hit max_tokens ({MAX_TOKENS}) for transcript_len={len(transcript)}")
            raise RecipeTooComplexError("Recipe too complex or transcript too long")

        tool_use = next((b for b in response.content if getattr(b, "type", None) == "tool_use"), None)
        if tool_use is None:
            raise RecipeParseError("Failed to parse recipe: no structured output returned")

        try:
            recipe = Recipe.model_validate(tool_use.input)
        except ValidationError as e:
            raise RecipeParseError(f"Invalid recipe structure: {e}") from e

        print(f"[PARSER] Parsed '{recipe.title[:40]}' sections={len(recipe.sections)} "
              f"steps={recipe.step_total} ingredients={len(recipe.ingredients)} ({time.time()-start:.1f}s)")
        return recipe

    async def parse(self, transcript: str) -> Recipe:
        return await asyncio.to_thread(self.parse_transcript, transcript)
