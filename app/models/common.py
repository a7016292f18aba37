# app/models/common.py
from __future__ import annotations

from typing import Any, Dict

from bson import ObjectId
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def oid_str(x) -> str | None:
    if x is None:
        return None
    if isinstance(x, ObjectId):
        return str(x)
    return str(x)


class DocumentModel(BaseModel):
    """
    Base for stored documents:
    - python side is snake_case, Mongo side is camelCase
    - enums are stored as their values
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=True,
        use_enum_values=True,
    )

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
