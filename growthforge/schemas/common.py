"""Shared pydantic building blocks for request bodies and AI output schemas"""
from typing import Annotated

from pydantic import BaseModel, ConfigDict, StringConstraints
from pydantic.alias_generators import to_camel


# Must be a real JSON string, surrounding whitespace stripped, not empty
NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, strict=True)]

# Caller-supplied free text (role descriptions, dilemmas), validated after stripping
FreeText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=4000)]


class CamelModel(BaseModel):
    """snake_case in Python, camelCase on the wire and in stored JSON"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")
