import pytest
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from types import SimpleNamespace
from unittest.mock import MagicMock

from agent.recipe_parser import RecipeParser, RecipeParseError, RecipeTooComplexError, RECIPE_TOOL_NAME

RECIPE_INPUT = {
    "title": "Garlic Butter Shrimp",
    "sections": [
        {"name": "Prep", "steps": [{"id": "step-1", "text": "Peel and devein the shrimp"}]},
        {"name": "Cook", "steps": [
            {"id": "step-2", "text": "Melt butter with garlic"},
            {"id": "step-3", "text": "Sear shrimp two minutes a side"},
        ]},
    ],
    "ingredients": [{"name": "shrimp", "quantity": "1 lb"}, {"name": "garlic", "notes": "minced"}],
}


def _response(content, stop_reason="tool_use"):
    return SimpleNamespace(content=content, stop_reason=stop_reason)


def _tool_block(data):
    return SimpleNamespace(type="tool_use", name=RECIPE_TOOL_NAME, input=data)


def _parser(response):
    client = MagicMock()
    client.messages.create.return_value = response
    return RecipeParser(api_key="test", client=client), client


def test_parse_transcript_returns_recipe():
    parser, client = _parser(_response([SimpleNamespace(type="text", text="ok"), _tool_block(RECIPE_INPUT)]))
    recipe = parser.parse_transcript("um so first you peel the shrimp, uh, then butter")
    assert recipe.title == "Garlic Butter Shrimp"
    assert [s.name for s in recipe.sections] == ["Prep", "Cook"]
    assert recipe.step_total == 3
    assert recipe.sections[0].steps[0].completed is False

    kwargs = client.messages.create.call_args.kwargs
    assert kwargs["tool_choice"] == {"type": "tool", "name": RECIPE_TOOL_NAME}
    assert kwargs["tools"][0]["input_schema"]["type"] == "object"
    assert "<transcript>um so first" in kwargs["messages"][0]["content"]


def test_max_tokens_is_too_complex():
    parser, _ = _parser(_response([_tool_block(RECIPE_INPUT)], stop_reason="max_tokens"))
    with pytest.raises(RecipeTooComplexError, match="too complex"):
        parser.parse_transcript("a very long rambling transcript")


def test_missing_tool_use():
    parser, _ = _parser(_response([SimpleNamespace(type="text", text="Sorry")]))
    with pytest.raises(RecipeParseError, match="no structured output"):
        parser.parse_transcript("make some toast please")


def test_invalid_structure():
    bad = dict(RECIPE_INPUT, sections=[{"name": "Bake", "steps": []}])
    parser, _ = _parser(_response([_tool_block(bad)]))
    with pytest.raises(RecipeParseError, match="Invalid recipe structure"):
        parser.parse_transcript("bake a cake for an hour")


@pytest.mark.asyncio
async def test_async_parse():
    parser, _ = _parser(_response([_tool_block(RECIPE_INPUT)]))
    recipe = await parser.parse("first you peel the shrimp")
    assert recipe.ingredients[1].notes == "minced"
