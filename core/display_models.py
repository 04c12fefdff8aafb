from typing import Tuple

from pydantic import BaseModel, ConfigDict

from core.payload_size import PayloadMeasurement, measure_payload


class DisplaySection(BaseModel):
    model_config = ConfigDict(frozen=True)
    name: str
    steps: Tuple[str, ...] = ()


class DisplayPayload(BaseModel):
    """
    Display-only view of a recipe as sent to the TRMNL webhook.
    Frozen: compression stages build a new payload instead of editing this one.
    """
    model_config = ConfigDict(frozen=True)
    title: str
    sections: Tuple[DisplaySection, ...] = ()
    step_count: int = 0
    truncated: bool = False

    def to_wire(self) -> dict:
        return {
            "merge_variables": {
                "recipe_title": self.title,
                "sections": [
                    {"name": s.name, "steps": list(s.steps)}
                    for s in self.sections
                ],
                "step_count": self.step_count,
                "truncated": self.truncated,
            }
        }

    def measure(self) -> PayloadMeasurement:
        return measure_payload(self.to_wire())

    def steps_present(self) -> int:
        return sum(len(s.steps) for s in self.sections)
