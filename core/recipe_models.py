"""
Recipe schema shared by the extraction adapter and the display pipeline.
The JSON schema of Recipe is also handed to Claude as the tool input schema.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

SectionName = Literal["Prep", "Marinate", "Cook", "Assemble"]


def _reject_lone_surrogates(value):
    # json.loads accepts "\ud83c" on its own, but it has no UTF-8 encoding
    if isinstance(value, str) and any("\ud800" <= ch <= "\udfff" for ch in value):
        raise ValueError("text contains an unpaired surrogate and cannot be encoded as UTF-8")
    return value


class Step(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: str = Field(description='Unique step ID like "step-1"')
    text: str = Field(description="The instruction text")
    completed: bool = False

    @field_validator("id", "text")
    @classmethod
    def check_encodable(cls, value):
        return _reject_lone_surrogates(value)


class Ingredient(BaseModel):
    model_config = ConfigDict(extra="ignore")
    name: str = Field(description="Ingredient name")
    quantity: Optional[str] = Field(default=None, description="Amount needed")
    notes: Optional[str] = Field(default=None, description='Prep notes like "diced" or "room temperature"')

    @field_validator("name", "quantity", "notes")
    @classmethod
    def check_encodable(cls, value):
        return _reject_lone_surrogates(value)


class Section(BaseModel):
    model_config = ConfigDict(extra="ignore")
    name: SectionName = Field(description="Section type")
    steps: List[Step] = Field(description="Steps in this section")


class Recipe(BaseModel):
    model_config = ConfigDict(extra="ignore")
    title: str = Field(description="Recipe name derived from transcript")
    sections: List[Section] = Field(description="Recipe sections in execution order")
    ingredients: List[Ingredient] = Field(description="All ingredients extracted from transcript")

    @field_validator("title")
    @classmethod
    def check_encodable(cls, value):
        return _reject_lone_surrogates(value)

    @property
    def step_total(self) -> int:
        return sum(len(s.steps) for s in self.sections)
