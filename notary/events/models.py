"""Events carried over the consensus log and the live feed."""

from dataclasses import asdict, dataclass
from typing import Any, ClassVar


@dataclass(frozen=True)
class Event:
    type: ClassVar[str] = ""

    def to_dict(self, source: str | None = None) -> dict[str, Any]:
        payload: dict[str, Any] = {"type": self.type, **asdict(self)}
        if source is not None:
            payload["source"] = source
        return payload


@dataclass(frozen=True)
class DuplicateEvent(Event):
    type: ClassVar[str] = "duplicate"

    hash: str
    timestamp: int


@dataclass(frozen=True)
class NotarizedEvent(Event):
    type: ClassVar[str] = "notarized"

    hash: str
    object_id: str
    token_id: str
    timestamp: int


@dataclass(frozen=True)
class AttestedEvent(Event):
    type: ClassVar[str] = "attested"

    hash: str
    attestation_object_id: str
    token_id: str
    timestamp: int


@dataclass(frozen=True)
class HelloEvent(Event):
    type: ClassVar[str] = "hello"

    now: int
    topic_id: str | None


EVENT_TYPES: dict[str, type[Event]] = {
    cls.type: cls for cls in (DuplicateEvent, NotarizedEvent, AttestedEvent, HelloEvent)
}


def parse_event(payload: dict[str, Any]) -> Event | None:
    """Build an Event from a decoded log message; None if it is not one of ours."""
    event_cls = EVENT_TYPES.get(str(payload.get("type", "")))
    if event_cls is None:
        return None
    fields = {k: v for k, v in payload.items() if k not in ("type", "source")}
    try:
        return event_cls(**fields)
    except TypeError:
        return None
