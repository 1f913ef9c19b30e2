"""Base schema: snake_case attributes, camelCase on the wire."""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_api(self) -> dict:
        """JSON-ready payload with the API's camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def coerce_str(value: Any) -> Any:
    """Server ids and months may arrive as numbers."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(int(value)) if float(value).is_integer() else str(value)
    return value
