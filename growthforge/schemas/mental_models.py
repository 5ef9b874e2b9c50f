from typing import List

from pydantic import field_validator
from pydantic_core import PydanticCustomError

from growthforge.schemas.common import CamelModel, FreeText, NonEmptyStr

MENTAL_MODEL_COUNT = 5


class MentalModel(CamelModel):
    name: NonEmptyStr
    explanation: NonEmptyStr
    new_perspective: NonEmptyStr
    key_insight: NonEmptyStr
    practical_action: NonEmptyStr


class MentalModelDraft(CamelModel):
    models: List[MentalModel]

    @field_validator("models", mode="before")
    @classmethod
    def exactly_five(cls, value):
        if isinstance(value, list) and len(value) != MENTAL_MODEL_COUNT:
            raise PydanticCustomError(
                "model_count",
                "expected {expected}, got {actual}",
                {"expected": MENTAL_MODEL_COUNT, "actual": len(value)},
            )
        return value


class MentalModelsRequest(CamelModel):
    prompt: FreeText
