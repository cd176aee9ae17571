from __future__ import annotations

from pyoracle._redact import redact_for_log
from pyoracle.config import OracleConfig


def test_redact_for_log_redacts_sensitive_keys() -> None:
    payload = {
        "from": "0x1111111111111111111111111111111111111111",
        "private_key": "0xdeadbeef",
        "nested": {"rawTransaction": "0xf86c", "signature": "0xsig"},
        "empty": {"secret": ""},
    }

    redacted = redact_for_log(payload)
    assert redacted["from"] == payload["from"]
    assert redacted["private_key"] == "<redacted>"
    assert redacted["nested"]["rawTransaction"] == "<redacted>"
    assert redacted["nested"]["signature"] == "<redacted>"
    assert redacted["empty"]["secret"] == ""


def test_redact_for_log_handles_config_dataclass() -> None:
    config = OracleConfig(private_key="0xabc", consumer_address="0x4444444444444444444444444444444444444444")

    redacted = redact_for_log(config)
    assert redacted["private_key"] == "<redacted>"
    assert redacted["consumer_address"] == config.consumer_address
    assert redacted["max_attempts"] == 3
    assert redacted["from_block"] is None


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"value": long_value}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]


def test_redact_for_log_summarises_bytes() -> None:
    assert redact_for_log([b"\x00" * 32]) == ["<bytes:32b>"]
