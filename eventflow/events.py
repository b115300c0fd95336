"""Event types routed between workflow nodes.

Events are small immutable values, normally frozen dataclasses. The routing
table is keyed by an event's *type tag*, a stable string that defaults to the
class's qualified name (``module.QualName``) and can be overridden with a
shorter name through a class keyword::

    @dataclass(frozen=True)
    class ToolCallRequested(Event, tag="tool-call-requested"):
        tool_name: str
        arguments: dict[str, Any]

Every concrete event class registers itself under its tag so a persisted
snapshot can be decoded in a different process.
"""

from dataclasses import dataclass
from typing import Any, ClassVar

from eventflow.errors import ConfigurationError, SerializationError

_REGISTRY: dict[str, type["Event"]] = {}


def _same_definition(a: type, b: type) -> bool:
    # dataclass(slots=True) rebuilds the class, which re-enters __init_subclass__
    return a.__module__ == b.__module__ and a.__qualname__ == b.__qualname__


class Event:
    """Base class for every event."""

    _tag: ClassVar[str]

    def __init_subclass__(cls, tag: str | None = None, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        # dataclass(slots=True) recreates the class without keywords; keep the tag it had
        cls._tag = tag or cls.__dict__.get("_tag") or f"{cls.__module__}.{cls.__qualname__}"
        existing = _REGISTRY.get(cls._tag)
        if existing is not None and existing is not cls and not _same_definition(existing, cls):
            raise ConfigurationError(
                f"Event tag {cls._tag!r} is already used by "
                f"{existing.__module__}.{existing.__qualname__}"
            )
        _REGISTRY[cls._tag] = cls

    @classmethod
    def event_type(cls) -> str:
        """Return the stable type tag used as the routing key."""
        return cls._tag

    def to_dict(self) -> dict[str, Any]:
        """Encode this event as ``{"type": tag, "data": {...}}``."""
        from eventflow.codec import encode_event

        return encode_event(self)

    @staticmethod
    def from_dict(payload: dict[str, Any]) -> "Event":
        """Decode an event produced by :meth:`to_dict`."""
        from eventflow.codec import decode_event

        return decode_event(payload)


@dataclass(frozen=True)
class StartEvent(Event, tag="StartEvent"):
    """Default event that starts every run."""


@dataclass(frozen=True)
class StopEvent(Event, tag="StopEvent"):
    """Terminal event. ``result`` is an optional payload for the caller."""

    result: Any = None


def resolve_event_class(tag: str) -> type[Event]:
    """Look up a registered event class by tag."""
    try:
        return _REGISTRY[tag]
    except KeyError:
        raise SerializationError(f"Unknown event type: {tag}") from None


def event_tag(event_or_type: "Event | type[Event]") -> str:
    """Return the type tag of an event instance or event class."""
    if isinstance(event_or_type, type):
        if not issubclass(event_or_type, Event):
            raise ConfigurationError(f"{event_or_type!r} is not an Event subclass")
        return event_or_type.event_type()
    if not isinstance(event_or_type, Event):
        raise ConfigurationError(f"{event_or_type!r} is not an Event")
    return type(event_or_type).event_type()
