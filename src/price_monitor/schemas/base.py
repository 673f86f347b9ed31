"""Shared pydantic base for wire models (camelCase JSON, snake_case attributes)."""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases; accepts either form on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
