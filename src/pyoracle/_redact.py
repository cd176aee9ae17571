"""Masking of relayer secrets in debug output.

``pyoracle -v`` dumps the effective :class:`~pyoracle.config.OracleConfig`,
which carries the relayer private key.  Everything printed that way goes
through :func:`redact_for_log` first.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping, Sequence
from typing import Any

_SENSITIVE_VALUE_KEYS: frozenset[str] = frozenset(
    {
        "private_key",
        "privatekey",
        "privakekey",
        "privake_key",
        "secret",
        "mnemonic",
        "authorization",
        # Signed payloads
        "raw_transaction",
        "rawtransaction",
        "signature",
    }
)


def redact_for_log(value: Any, *, max_string: int = 256, _depth: int = 0) -> Any:
    """Copy *value* with signing material replaced by ``"<redacted>"``.

    Keys are matched case-insensitively against private keys, signed raw
    transactions and signatures.  Dataclasses are expanded to their fields
    and long strings are cut at *max_string*.
    """
    if _depth > 20:
        return "<max-depth>"

    if value is None:
        return None

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        value = {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}

    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)
            if key.lower() in _SENSITIVE_VALUE_KEYS:
                redacted[key] = "<redacted>" if v else v
            else:
                redacted[key] = redact_for_log(v, max_string=max_string, _depth=_depth + 1)
        return redacted

    if isinstance(value, Sequence):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]

    return repr(value)
