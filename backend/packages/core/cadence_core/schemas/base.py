"""Shared base model for camelCase JSON documents."""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Model that reads and writes camelCase keys but is populated by field name in code."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
    )

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys, dropping unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
