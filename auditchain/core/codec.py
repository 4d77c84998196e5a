"""
Event payload codec.

Audit event data is a JSON-compatible value tree: strings, numbers, booleans,
null, ordered lists and string-keyed mappings. Anything else is rejected
before it reaches the cipher.
"""

import json
import math
from typing import Any, Dict, List, Mapping, Union

from .canonical import canonical_json_bytes
from .errors import MisuseError

EventValue = Union[None, bool, int, float, str, List["EventValue"], Dict[str, "EventValue"]]
EventData = Dict[str, EventValue]


def check_event_value(value: Any, path: str = "$") -> None:
    """
    Validate that value is a supported event value.

    Args:
        value: Value to validate
        path: Location used in error messages

    Raises:
        MisuseError: If the value (or anything nested in it) is unsupported
    """
    if value is None or isinstance(value, (bool, int, str)):
        return
    if isinstance(value, float):
        if not math.isfinite(value):
            raise MisuseError(f"non-finite number at {path}")
        return
    if isinstance(value, (list, tuple)):
        for i, item in enumerate(value):
            check_event_value(item, f"{path}[{i}]")
        return
    if isinstance(value, Mapping):
        for key, item in value.items():
            if not isinstance(key, str):
                raise MisuseError(f"mapping key {key!r} at {path} is not a string")
            check_event_value(item, f"{path}.{key}")
        return
    raise MisuseError(f"unsupported value of type {type(value).__name__} at {path}")


class EventCodec:
    """
    Canonical encode/decode pair for event data.

    encode() output is stable for the same logical input: mapping keys are
    sorted and whitespace is removed.
    """

    def encode(self, event_data: Mapping[str, Any]) -> bytes:
        if not isinstance(event_data, Mapping):
            raise MisuseError("event data must be a mapping")
        check_event_value(event_data)
        return canonical_json_bytes(dict(event_data))

    def decode(self, payload: bytes) -> EventData:
        try:
            data = json.loads(payload.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as ex:
            raise MisuseError(f"payload is not canonical event data: {ex}") from ex
        # older writers encoded empty event data as an empty JSON array
        if data == []:
            return {}
        if not isinstance(data, dict):
            raise MisuseError("payload does not hold a mapping")
        return data
