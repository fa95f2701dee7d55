"""
Request Context

Snapshot of the request fields the event factory reads: proxy headers,
connection address, URL parts and tracking cookies.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional


@dataclass(frozen=True)
class RequestContext:
    """Request fields consumed when building a server event."""

    forwarded_for: Optional[str] = None
    remote_addr: Optional[str] = None
    https: Optional[str] = None
    host: Optional[str] = None
    request_uri: Optional[str] = None
    referer: Optional[str] = None
    user_agent: Optional[str] = None
    cookies: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "cookies", MappingProxyType(dict(self.cookies or {})))

    @classmethod
    def from_server_vars(
        cls,
        server: Mapping[str, str],
        cookies: Optional[Mapping[str, str]] = None
    ) -> 'RequestContext':
        """Create a context from CGI/WSGI style server variables.

        Args:
            server: Mapping with keys such as HTTP_X_FORWARDED_FOR and REMOTE_ADDR
            cookies: Request cookies

        Returns:
            RequestContext populated from the given variables
        """
        return cls(
            forwarded_for=server.get("HTTP_X_FORWARDED_FOR"),
            remote_addr=server.get("REMOTE_ADDR"),
            https=server.get("HTTPS"),
            host=server.get("HTTP_HOST"),
            request_uri=server.get("REQUEST_URI"),
            referer=server.get("HTTP_REFERER"),
            user_agent=server.get("HTTP_USER_AGENT"),
            cookies=dict(cookies or {})
        )

    @classmethod
    def from_flask_request(cls, request) -> 'RequestContext':
        """Create a context from a Flask (werkzeug) request.

        Args:
            request: The current Flask request object

        Returns:
            RequestContext populated from the request headers and environ
        """
        request_uri = request.environ.get("REQUEST_URI")
        if not request_uri:
            request_uri = request.path
            if request.query_string:
                request_uri += "?" + request.query_string.decode("latin-1")

        return cls(
            forwarded_for=request.headers.get("X-Forwarded-For"),
            remote_addr=request.remote_addr,
            https="on" if request.is_secure else None,
            host=request.host or None,
            request_uri=request_uri,
            referer=request.headers.get("Referer"),
            user_agent=request.headers.get("User-Agent"),
            cookies=dict(request.cookies)
        )
