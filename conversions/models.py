"""
Data Models for Server Events

Defines the event records handed to the Conversions API transport.
"""

from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple


def _compact(record) -> Dict[str, Any]:
    """Convert a dataclass record to a dictionary without absent values."""
    result = {}
    for f in fields(record):
        value = getattr(record, f.name)
        if value is None or value == {}:
            continue
        if isinstance(value, Mapping):
            value = dict(value)
        elif isinstance(value, tuple):
            value = list(value)
        result[f.name] = value
    return result


@dataclass(frozen=True)
class UserData:
    """Visitor network signals and identity fields for one event."""

    client_ip_address: Optional[str] = None
    client_user_agent: Optional[str] = None
    fbc: Optional[str] = None
    fbp: Optional[str] = None

    # Identity fields, only set when PII collection is enabled
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country_code: Optional[str] = None
    zip_code: Optional[str] = None
    gender: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return _compact(self)


@dataclass(frozen=True)
class CustomData:
    """Commerce and free-form properties attached to an event."""

    currency: Optional[str] = None
    value: Optional[float] = None
    content_ids: Optional[Tuple[str, ...]] = None
    content_type: Optional[str] = None
    content_name: Optional[str] = None
    content_category: Optional[str] = None
    contents: Optional[Tuple[Any, ...]] = None
    num_items: Optional[int] = None
    status: Optional[str] = None
    custom_properties: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # Freeze the collection fields so a built event cannot be altered
        if self.content_ids is not None:
            object.__setattr__(self, "content_ids", tuple(self.content_ids))
        if self.contents is not None:
            object.__setattr__(self, "contents", tuple(self.contents))
        object.__setattr__(self, "custom_properties", MappingProxyType(dict(self.custom_properties)))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return _compact(self)


@dataclass(frozen=True)
class Event:
    """A single server event ready for transmission."""

    event_id: str
    event_name: str
    event_time: int
    event_source_url: Optional[str] = None
    user_data: UserData = field(default_factory=UserData)
    custom_data: Optional[CustomData] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = {
            "event_id": self.event_id,
            "event_name": self.event_name,
            "event_time": self.event_time,
            "user_data": self.user_data.to_dict(),
        }
        if self.event_source_url is not None:
            data["event_source_url"] = self.event_source_url
        if self.custom_data is not None:
            data["custom_data"] = self.custom_data.to_dict()
        return data


@dataclass(frozen=True)
class EventResult:
    """Outcome of building an event from integration data.

    On failure ``event`` is the base event without any provider fields and
    ``error`` holds the exception that was raised.
    """

    event: Event
    error: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None
