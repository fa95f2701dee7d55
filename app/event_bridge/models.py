"""
Data Models for the Event Bridge

Request payloads accepted by the event bridge endpoints.
"""

from typing import Any, Dict

from pydantic import BaseModel, Field


class EventRequest(BaseModel):
    """Payload posted by the browser when a tracked action happens."""
    event_name: str = Field(min_length=1, description="Event type label, e.g. 'Lead' or 'Purchase'")
    data: Dict[str, Any] = Field(default_factory=dict, description="Raw integration fields (email, value, currency, ...)")
    use_pageview_referer: bool = Field(default=True, description="Use the page that sent the request as event source URL")
    integration: str = Field(default="web", description="Name of the integration reporting the event")
