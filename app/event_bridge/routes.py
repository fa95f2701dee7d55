"""
Event Bridge Routes

Flask routes that build server events for the current request.
"""

from flask import Blueprint, request, jsonify
from pydantic import ValidationError

from conversions.event_factory import ServerEventFactory
from conversions.request_context import RequestContext
from .models import EventRequest


def create_event_bridge_blueprint(config_manager, event_sink):
    """Create a Flask blueprint for event bridge routes.

    Args:
        config_manager: ConfigManager providing the current pixel settings
        event_sink: Callable receiving each finished event

    Returns:
        Flask blueprint with event bridge routes
    """
    bp = Blueprint('event_bridge', __name__)

    @bp.route("/event", methods=["POST"])
    def create_event():
        """Build a server event from a browser-reported action."""
        payload_data = request.get_json(silent=True)
        if not isinstance(payload_data, dict):
            return jsonify({"error": "invalid-payload"}), 400

        try:
            payload = EventRequest(**payload_data)
        except ValidationError as exc:
            return jsonify({"error": "invalid-payload", "details": exc.errors(include_url=False, include_context=False)}), 400

        factory = ServerEventFactory(
            RequestContext.from_flask_request(request),
            config_manager.get_pixel_config()
        )
        result = factory.build_event(
            payload.event_name,
            lambda: payload.data,
            integration=payload.integration,
            use_pageview_referer=payload.use_pageview_referer
        )

        event_sink(result.event)

        return jsonify({
            "status": "ok" if result.succeeded else "degraded",
            "event": result.event.to_dict()
        })

    return bp
