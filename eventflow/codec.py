"""JSON-compatible tagged encoding for snapshot values.

Plain JSON values (``None``, bools, numbers, strings, lists and string-keyed
dicts) encode as themselves. Events, interrupt requests, actions and tuples
are wrapped in a ``{"$type": ..., "value": ...}`` envelope so they decode back
to the same Python types. Anything else is rejected with SerializationError
rather than pickled: the resuming process may not share this one's classes.
"""

import dataclasses
from typing import Any

from eventflow.errors import SerializationError
from eventflow.events import Event, resolve_event_class
from eventflow.interrupt import Action, InterruptRequest

TYPE_KEY = "$type"


def encode_event(event: Event) -> dict[str, Any]:
    if dataclasses.is_dataclass(event):
        fields = {f.name: getattr(event, f.name) for f in dataclasses.fields(event) if f.init}
    else:
        fields = dict(getattr(event, "__dict__", {}))
    return {
        "type": type(event).event_type(),
        "data": {name: encode_value(value) for name, value in fields.items()},
    }


def decode_event(payload: dict[str, Any]) -> Event:
    try:
        tag = payload["type"]
        data = payload.get("data") or {}
    except (KeyError, TypeError, AttributeError) as e:
        raise SerializationError(f"Malformed event payload: {payload!r}") from e
    cls = resolve_event_class(tag)
    try:
        return cls(**{name: decode_value(value) for name, value in data.items()})
    except TypeError as e:
        raise SerializationError(f"Cannot rebuild event {tag}: {e}") from e


def encode_value(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Event):
        return {TYPE_KEY: "event", "value": encode_event(value)}
    if isinstance(value, InterruptRequest):
        return {TYPE_KEY: "interrupt_request", "value": value.to_dict()}
    if isinstance(value, Action):
        return {TYPE_KEY: "action", "value": value.to_dict()}
    if isinstance(value, tuple):
        return {TYPE_KEY: "tuple", "value": [encode_value(v) for v in value]}
    if isinstance(value, list):
        return [encode_value(v) for v in value]
    if isinstance(value, dict):
        if not all(isinstance(k, str) for k in value):
            raise SerializationError("Only dicts with string keys can be persisted")
        items = {k: encode_value(v) for k, v in value.items()}
        if TYPE_KEY in value:
            # keep user dicts that happen to use the marker key unambiguous
            return {TYPE_KEY: "dict", "value": items}
        return items
    raise SerializationError(
        f"Cannot persist value of type {type(value).__module__}.{type(value).__qualname__}"
    )


def decode_value(value: Any) -> Any:
    if isinstance(value, list):
        return [decode_value(v) for v in value]
    if not isinstance(value, dict):
        return value
    if TYPE_KEY not in value:
        return {k: decode_value(v) for k, v in value.items()}

    kind = value[TYPE_KEY]
    inner = value.get("value")
    if kind == "event":
        return decode_event(inner)
    if kind == "interrupt_request":
        return InterruptRequest.from_dict(inner)
    if kind == "action":
        return Action.from_dict(inner)
    if kind == "tuple":
        return tuple(decode_value(v) for v in inner)
    if kind == "dict":
        return {k: decode_value(v) for k, v in inner.items()}
    raise SerializationError(f"Unknown encoded value type: {kind}")
