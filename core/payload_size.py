import json
from typing import Any, NamedTuple


class PayloadMeasurement(NamedTuple):
    serialized: str
    bytes: int


def serialize_payload(obj: Any) -> str:
    """Compact JSON, the exact form posted to the webhook."""
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"))


def measure_payload(obj: Any) -> PayloadMeasurement:
    """
    Serialize and count UTF-8 bytes, not characters.
    An emoji is one character but four bytes against the transport budget.
    """
    serialized = serialize_payload(obj)
    return PayloadMeasurement(serialized, len(serialized.encode("utf-8")))
