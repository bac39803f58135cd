"""Shared base for persisted records: snake_case in Python, camelCase on disk."""
from typing import Any

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class Record(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    def to_json(self) -> dict[str, Any]:
        """JSON-safe dict in the on-disk/wire shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
