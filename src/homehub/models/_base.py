"""Base model and enum for hub wire payloads.

Every payload model inherits from :class:`HubBaseModel` which provides:

* ``alias_generator=to_camel`` so camelCase wire keys (``windSpeed``) map
  automatically to snake_case fields.
* A ``model_validator(mode="before")`` that drops ``null`` values and any
  field whose value does not validate, so one bad field never rejects the
  whole payload.
* ``_KEY_ALIASES`` for legacy key names (e.g. ``motion`` -> ``detected``).

Enums inherit from :class:`HubStrEnum` which resolves unknown values to
``UNKNOWN`` when the enum defines it.
"""

from __future__ import annotations

import enum
import functools
import logging
from typing import Annotated, Any, ClassVar

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from homehub.exceptions import HubDecodeError

_logger = logging.getLogger(__name__)


class HubStrEnum(enum.StrEnum):
    """Base for string enums carried on the wire.

    Matching is case-insensitive. Values without a mapped member resolve to
    ``UNKNOWN`` when the subclass defines it, otherwise ``ValueError`` is
    raised as usual.
    """

    @classmethod
    def _missing_(cls, value: object) -> HubStrEnum | None:
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value.lower() == lowered:
                    return member
        return cls.__members__.get("UNKNOWN")


@functools.cache
def _field_lookup(model: type[BaseModel]) -> dict[str, str]:
    """Map every accepted input key (alias or name) to its field name."""
    lookup: dict[str, str] = {}
    for name, info in model.model_fields.items():
        lookup[name] = name
        if info.alias:
            lookup[info.alias] = name
    return lookup


@functools.cache
def _field_adapter(model: type[BaseModel], name: str) -> TypeAdapter[Any]:
    info = model.model_fields[name]
    if info.metadata:
        return TypeAdapter(Annotated[(info.annotation, *info.metadata)])
    return TypeAdapter(info.annotation)


class HubBaseModel(BaseModel):
    """Base for hub payload and channel-state models.

    All fields of a subclass should be optional: a payload carries only the
    fields it wants to update, and invalid fields are discarded individually.
    """

    _KEY_ALIASES: ClassVar[dict[str, str]] = {}

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_invalid_fields(cls, values: Any) -> Any:
        """Apply key aliases, then discard null and invalid fields one by one."""
        if not isinstance(values, dict):
            return values

        working = dict(values)
        for old_key, new_key in cls._KEY_ALIASES.items():
            if old_key in working and new_key not in working:
                working[new_key] = working.pop(old_key)

        lookup = _field_lookup(cls)
        cleaned: dict[str, Any] = {}
        for key, value in working.items():
            if value is None:
                continue
            name = lookup.get(key)
            if name is None:
                # Unknown keys are left for ``extra="ignore"`` to discard.
                cleaned[key] = value
                continue
            try:
                _field_adapter(cls, name).validate_python(value)
            except ValidationError:
                _logger.debug("Dropping invalid field %s.%s=%r", cls.__name__, key, value)
                continue
            cleaned[key] = value
        return cleaned

    @classmethod
    def from_json_value(cls, value: Any, *, topic: str = "") -> HubBaseModel:
        """Build the model from an already-parsed JSON value.

        Raises :class:`HubDecodeError` when *value* is not a JSON object.
        """
        if not isinstance(value, dict):
            raise HubDecodeError(
                f"{cls.__name__} expects a JSON object, got {type(value).__name__}",
                topic=topic,
            )
        try:
            return cls.model_validate(value)
        except ValidationError as exc:
            raise HubDecodeError(f"{cls.__name__} payload rejected: {exc}", topic=topic) from exc

    def to_payload(self) -> dict[str, Any]:
        """Wire representation: camelCase keys, unset fields omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
