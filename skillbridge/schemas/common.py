from pydantic import BaseModel, ConfigDict, model_validator
from sqlalchemy import inspect
from skillbridge.core.database import Base
from typing import Any, ClassVar, Dict


class ORMModel(BaseModel):
    """Response model read from ORM rows.

    Only attributes that are already loaded are read, so relationships that a
    query did not eager-load come out as their defaults instead of triggering
    a lazy load outside the event loop.
    """

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="before")
    @classmethod
    def _read_loaded_attributes(cls, data: Any) -> Any:
        if not isinstance(data, Base):
            return data
        unloaded = inspect(data).unloaded
        values = {}
        for name in cls.model_fields:
            if name in unloaded or not hasattr(data, name):
                continue
            values[name] = getattr(data, name)
        return values


class PatchModel(BaseModel):
    """Partial-update command that remembers which fields the caller sent.

    A field is either absent (leave the stored value alone), explicitly null
    (clear it) or set to a value (overwrite it). Fields listed in
    ``NON_NULLABLE`` reject an explicit null.
    """

    model_config = ConfigDict(extra="forbid")

    NON_NULLABLE: ClassVar[frozenset] = frozenset()

    @model_validator(mode="after")
    def _reject_null_required_fields(self):
        cleared = [name for name in self.model_fields_set if name in self.NON_NULLABLE and getattr(self, name) is None]
        if cleared:
            raise ValueError(f"{', '.join(sorted(cleared))} cannot be null")
        return self

    def is_set(self, name: str) -> bool:
        return name in self.model_fields_set

    def changes(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in type(self).model_fields if self.is_set(name)}
