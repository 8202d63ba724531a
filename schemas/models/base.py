"""
Shared base for MongoDB document models.

Documents keep their BSON ``_id`` as ``id``. JWT subjects and path values
arrive as strings, so lookups go through to_object_id(), which yields None
for anything that is not a 24-character hex id instead of raising.
"""

from __future__ import annotations

from typing import Any, FrozenSet, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, GetCoreSchemaHandler, PrivateAttr
from pydantic_core import core_schema


class PyObjectId(ObjectId):
    """ObjectId accepted from BSON or hex strings, dumped as its hex string."""

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.to_string_ser_schema(),
        )

    @classmethod
    def _validate(cls, v: Any) -> ObjectId:
        if isinstance(v, ObjectId):
            return v
        if isinstance(v, str) and ObjectId.is_valid(v):
            return ObjectId(v)
        raise ValueError(f"Invalid ObjectId: {v!r}")


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Coerce a JWT subject or path value to ObjectId; None when it is not one."""
    try:
        return PyObjectId._validate(value)
    except ValueError:
        return None


class MongoBaseModel(BaseModel):
    """Document model with an ``_id``, assignment validation and dirty tracking.

    Assignments are validated so in-memory mutations (new password hash,
    reset fields) go through the same field validators as loaded data, and
    each assigned field name is recorded until mark_clean() so a save can
    $set just those fields.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        validate_assignment=True,
    )

    id: Optional[PyObjectId] = Field(default=None, alias="_id")

    _changed: set = PrivateAttr(default_factory=set)

    def __setattr__(self, name: str, value: Any) -> None:
        super().__setattr__(name, value)
        if name in type(self).model_fields:
            self._changed.add(name)

    @property
    def changed_fields(self) -> FrozenSet[str]:
        """Field names assigned since construction or the last mark_clean()."""
        return frozenset(self._changed)

    def mark_clean(self, *names: str) -> None:
        """Forget pending changes to *names*, or to every field when none are given."""
        if names:
            self._changed.difference_update(names)
        else:
            self._changed.clear()

    def to_mongo(self) -> dict:
        """Dump for insert_one: ``_id`` stays a real ObjectId, or is left out
        so the server assigns one."""
        data = self.model_dump(by_alias=True)
        data.pop("_id", None)
        if self.id is not None:
            data["_id"] = self.id
        return data

    @classmethod
    def from_mongo(cls, data: Optional[dict]):
        """Build from a find_one() result; None passes through.

        The result has no pending changes.
        """
        if data is None:
            return None
        return cls.model_validate(data)
