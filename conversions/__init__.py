"""
Conversions Package

Builds privacy-filtered server events for the advertising platform's
Conversions API from request context and integration data.
"""

from .event_factory import ServerEventFactory
from .models import CustomData, Event, EventResult, UserData
from .normalizer import normalize_field
from .request_context import RequestContext

__all__ = [
    'ServerEventFactory',
    'Event',
    'EventResult',
    'UserData',
    'CustomData',
    'RequestContext',
    'normalize_field',
]
