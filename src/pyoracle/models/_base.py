"""Base model and enum for ledger records and events.

Every pyoracle model inherits from :class:`OracleBaseModel` which
provides:

* ``alias_generator=to_camel`` so the camelCase names used by the
  contract ABI (``requestId``) map to snake_case fields.
* Per-class ``_KEY_ALIASES`` for ABI names that do not follow the
  camelCase rule (the contract calls longitude ``log``).

State enums inherit from :class:`OracleEnum` which adds an ``UNKNOWN``
member at ``-1`` and a ``_missing_`` hook that returns ``UNKNOWN``
for any value without a mapped member.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from typing import Annotated, Any, ClassVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from pyoracle._constants import UINT256_MAX


def parse_hex(value: Any) -> str | None:
    """Normalise a transaction/block hash (``bytes`` or ``str``) to ``0x`` hex."""
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    text = str(value)
    return text if text.startswith("0x") else f"0x{text}"


HexStr = Annotated[str | None, BeforeValidator(parse_hex)]
"""Annotated type that accepts raw bytes or hex strings."""

RequestId = Annotated[int, Field(ge=0, le=UINT256_MAX)]
"""Unsigned 256-bit request identifier."""


class OracleEnum(enum.IntEnum):
    """Base for ledger state enums.

    Every subclass **must** define ``UNKNOWN = -1``.
    """

    @classmethod
    def _missing_(cls, value: object) -> OracleEnum:
        if hasattr(cls, "UNKNOWN"):
            unknown: OracleEnum = cls.UNKNOWN  # type: ignore[attr-defined]
            return unknown
        return next(iter(cls))


class OracleBaseModel(BaseModel):
    """Base for ledger records and events."""

    _KEY_ALIASES: ClassVar[dict[str, str]] = {}
    """ABI key → camelCase field alias renames applied before validation."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    @model_validator(mode="before")
    @classmethod
    def _apply_key_aliases(cls, values: Any) -> Any:
        if not isinstance(values, Mapping):
            return values
        working = dict(values)
        for old_key, new_key in cls._KEY_ALIASES.items():
            if old_key in working and new_key not in working:
                working[new_key] = working.pop(old_key)
        return working
