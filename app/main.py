import argparse
import logging
import sys
from pathlib import Path

# Import configuration management
sys.path.append(str(Path(__file__).parent.parent))
from config_manager import ConfigManager

from flask import Flask, jsonify

from conversions.logging_config import setup_logging, stop_logging
from app.event_bridge.factory import create_event_bridge_module

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Application factory
# -----------------------------------------------------------------------------

def create_app(config_manager: ConfigManager | None = None, event_sink=None) -> Flask:
    """Create the Flask application with the event bridge registered.

    Args:
        config_manager: Configuration source; a default ConfigManager is used if omitted
        event_sink: Callable receiving each finished event (the Conversions API transport)

    Returns:
        Configured Flask application
    """
    config_manager = config_manager or ConfigManager()
    app_config = config_manager.get_app_config()

    flask_app = Flask(__name__)
    flask_app.config["CONFIG_MANAGER"] = config_manager

    event_bridge_module = create_event_bridge_module(
        config_manager=config_manager,
        event_sink=event_sink
    )
    flask_app.register_blueprint(event_bridge_module["blueprint"])

    @flask_app.get("/actuator/health")
    def actuator_health():
        """Health check endpoint for monitoring tools and cloud platforms."""
        return jsonify({
            "status": "UP",
            "service": "pixel-event-bridge"
        }), 200

    logger.debug(f"Application created (debug={app_config.debug})")
    return flask_app


# -----------------------------------------------------------------------------
# Entry point
# -----------------------------------------------------------------------------

def main() -> None:
    parser = argparse.ArgumentParser(description="Pixel event bridge server")
    parser.add_argument("--port", type=int, help="Port to run the server on")
    parser.add_argument("--host", type=str, help="Host to bind the server to")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    args = parser.parse_args()

    config_manager = ConfigManager()
    app_config = config_manager.get_app_config()

    # Override configuration with command line arguments
    if args.port:
        app_config.port = args.port
    if args.host:
        app_config.host = args.host
    if args.debug:
        app_config.debug = args.debug

    setup_logging(app_config.debug)

    pixel_config = config_manager.get_pixel_config()
    logger.info(f"Pixel: {pixel_config.pixel_id or '(unset)'}, use_pii={pixel_config.use_pii}")
    logger.info(f"Server: {app_config.host}:{app_config.port}")

    app = create_app(config_manager)
    try:
        app.run(
            host=app_config.host,
            port=app_config.port,
            debug=app_config.debug
        )
    finally:
        stop_logging()


if __name__ == "__main__":
    main()
