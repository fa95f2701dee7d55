"""
Server Event Factory

Builds Conversions API events from the current request context, the pixel
settings and optional data supplied by an integration.
"""

import ipaddress
import logging
import time
import uuid
from dataclasses import replace
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from .models import CustomData, Event, EventResult, UserData
from .normalizer import Normalizer, normalize_field
from .request_context import RequestContext

logger = logging.getLogger(__name__)

FBC_COOKIE = "_fbc"
FBP_COOKIE = "_fbp"

# Raw data key -> UserData attribute, attached only when PII is enabled
IDENTITY_FIELDS = {
    "email": "email",
    "first_name": "first_name",
    "last_name": "last_name",
    "phone": "phone",
    "city": "city",
    "state": "state",
    "country": "country_code",
    "zip": "zip_code",
    "gender": "gender",
}

# Raw data keys copied onto CustomData regardless of the PII setting
CUSTOM_FIELDS = (
    "currency",
    "value",
    "content_ids",
    "content_type",
    "content_name",
    "content_category",
    "contents",
    "num_items",
    "status",
)

INTEGRATION_TRACKING_KEY = "fb_integration_tracking"


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


class ServerEventFactory:
    """Request-scoped factory for server events."""

    def __init__(
        self,
        context: RequestContext,
        options,
        normalizer: Normalizer = normalize_field
    ):
        """Initialize the factory.

        Args:
            context: Request fields for the current request
            options: Settings object exposing a boolean ``use_pii`` attribute
            normalizer: Callable used to clean raw integration values
        """
        self.context = context
        self.options = options
        self.normalizer = normalizer

    def _use_pii(self) -> bool:
        return bool(getattr(self.options, "use_pii", False))

    def _get_ip_address(self) -> Optional[str]:
        """Get the client IP, preferring the first X-Forwarded-For entry."""
        candidate = None
        if self.context.forwarded_for:
            candidate = self.context.forwarded_for.split(",")[0].strip()
        elif self.context.remote_addr:
            candidate = self.context.remote_addr.strip()

        if not candidate:
            return None

        try:
            ipaddress.ip_address(candidate)
        except ValueError:
            return None
        return candidate

    def _get_request_uri(self) -> Optional[str]:
        ctx = self.context
        if not ctx.host or not ctx.request_uri:
            return None
        https = ctx.https is not None and ctx.https.lower() not in ("", "off")
        scheme = "https" if https else "http"
        return f"{scheme}://{ctx.host}{ctx.request_uri}"

    def _get_event_source_url(self, use_pageview_referer: bool) -> Optional[str]:
        if use_pageview_referer and self.context.referer:
            return self.context.referer
        return self._get_request_uri()

    def new_event(self, event_name: str, use_pageview_referer: bool = False) -> Event:
        """Create a base event for the current request.

        Args:
            event_name: Event type label, e.g. "Lead" or "Purchase"
            use_pageview_referer: Use the referer as event source URL when present

        Returns:
            Event with fresh id and time, source URL and network user data
        """
        return self._new_event(event_name, use_pageview_referer, self._use_pii())

    def _new_event(self, event_name: str, use_pageview_referer: bool, use_pii: bool) -> Event:
        if not event_name:
            raise ValueError("event_name must be a non-empty string")

        cookies = self.context.cookies or {}
        user_data = UserData(
            client_ip_address=self._get_ip_address(),
            client_user_agent=self.context.user_agent if use_pii else None,
            fbc=cookies.get(FBC_COOKIE),
            fbp=cookies.get(FBP_COOKIE)
        )

        return Event(
            event_id=str(uuid.uuid4()),
            event_name=event_name,
            event_time=int(time.time()),
            event_source_url=self._get_event_source_url(use_pageview_referer),
            user_data=user_data
        )

    def _normalized(self, data: Mapping[str, Any], keys) -> Dict[str, Any]:
        values = {}
        for key in keys:
            raw = data.get(key)
            if _is_empty(raw):
                continue
            value = self.normalizer(key, raw)
            if not _is_empty(value):
                values[key] = value
        return values

    def _apply_data(
        self,
        event: Event,
        data: Mapping[str, Any],
        integration: str,
        use_pii: bool
    ) -> Event:
        user_data = event.user_data
        if use_pii:
            identity = self._normalized(data, IDENTITY_FIELDS)
            user_data = replace(
                user_data,
                **{IDENTITY_FIELDS[key]: value for key, value in identity.items()}
            )

        custom = self._normalized(data, CUSTOM_FIELDS)
        custom_data = CustomData(
            custom_properties={INTEGRATION_TRACKING_KEY: integration},
            **custom
        )

        return replace(event, user_data=user_data, custom_data=custom_data)

    def build_event(
        self,
        event_name: str,
        data_provider: Callable[..., Mapping[str, Any]],
        provider_args: Sequence[Any] = (),
        integration: str = "",
        use_pageview_referer: bool = False
    ) -> EventResult:
        """Build an event enriched with data from an integration.

        The data provider is always invoked. Identity fields it returns are
        only attached when PII collection is enabled. If the provider or the
        normalization of its data fails, the failure is logged and the base
        event is returned in the result alongside the error.

        Args:
            event_name: Event type label
            data_provider: Callable returning raw field name -> value
            provider_args: Positional arguments for the data provider
            integration: Integration name, used for logging and tracking
            use_pageview_referer: Use the referer as event source URL when present

        Returns:
            EventResult with the built event and any captured error
        """
        # One read of the toggle gates every PII field of this event
        use_pii = self._use_pii()
        event = self._new_event(event_name, use_pageview_referer, use_pii)

        try:
            data = data_provider(*provider_args) or {}
            return EventResult(event=self._apply_data(event, data, integration, use_pii))
        except Exception as e:
            logger.exception(
                f"Failed to collect {event_name} event data for integration '{integration}': {e}"
            )
            return EventResult(event=event, error=e)

    def safe_create_event(
        self,
        event_name: str,
        data_provider: Callable[..., Mapping[str, Any]],
        provider_args: Sequence[Any] = (),
        integration: str = "",
        use_pageview_referer: bool = False
    ) -> Event:
        """Create an event from integration data without raising on provider errors."""
        return self.build_event(
            event_name,
            data_provider,
            provider_args,
            integration,
            use_pageview_referer
        ).event
