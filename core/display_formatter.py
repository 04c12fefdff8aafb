"""
Maps a parsed recipe onto the TRMNL merge_variables layout.

Ingredients are left out on purpose: the display is step-driven and the
quantities are implied by the step text. Titles and steps are cut to fixed
prefixes here; the byte budget is enforced later by the compressor.
"""
from core.display_models import DisplayPayload, DisplaySection
from core.recipe_models import Recipe

MAX_TITLE_CHARS = 40
MAX_STEP_CHARS = 80


def format_for_display(recipe: Recipe) -> DisplayPayload:
    sections = tuple(
        DisplaySection(
            name=section.name,
            steps=tuple(step.text[:MAX_STEP_CHARS] for step in section.steps),
        )
        for section in recipe.sections
    )
    return DisplayPayload(
        title=recipe.title[:MAX_TITLE_CHARS],
        sections=sections,
        step_count=sum(len(s.steps) for s in sections),
        truncated=False,
    )


project = format_for_display
