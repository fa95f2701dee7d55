"""
Factory for creating the event bridge module.
"""
import logging
from typing import Callable, Optional

from conversions.models import Event
from .routes import create_event_bridge_blueprint

logger = logging.getLogger(__name__)

EventSink = Callable[[Event], None]


def log_event_sink(event: Event) -> None:
    """Default sink that only records the finished event in the log."""
    logger.info(f"Captured {event.event_name} event {event.event_id}")


def create_event_bridge_module(config_manager, event_sink: Optional[EventSink] = None) -> dict:
    """Create event bridge module with routes.

    Args:
        config_manager: ConfigManager providing the current pixel settings
        event_sink: Callable receiving each finished event (the transport)

    Returns:
        Dictionary containing the sink and blueprint
    """
    sink = event_sink or log_event_sink

    blueprint = create_event_bridge_blueprint(
        config_manager=config_manager,
        event_sink=sink
    )

    return {
        "sink": sink,
        "blueprint": blueprint
    }
