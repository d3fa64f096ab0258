"""Shared pydantic base for the camelCase JSON the web client speaks."""

from pydantic import BaseModel, ConfigDict


def _to_camel(string: str) -> str:
    parts = string.split("_")
    if len(parts) == 1:
        return string
    head, *tail = parts
    return head + "".join(word.capitalize() for word in tail)


class CamelModel(BaseModel):
    """Serialize with camelCase aliases; accept either spelling on input."""

    model_config = ConfigDict(alias_generator=_to_camel, populate_by_name=True, from_attributes=True)
