"""
Event Bridge Subsystem

Turns page and form submissions into Conversions API server events.
"""

from .factory import create_event_bridge_module
from .models import EventRequest

__all__ = ['create_event_bridge_module', 'EventRequest']
