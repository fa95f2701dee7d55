"""
Logging Configuration Module

Queue-based logging for the event bridge server. Request handler threads only
enqueue records; a single listener writes them to stdout.
"""

import logging
import logging.handlers
import sys
from queue import Queue
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"

# Loggers kept at WARNING unless debug logging is enabled
NOISY_LOGGERS = ("werkzeug", "urllib3")


class ThreadSafeLoggingConfig:
    """Owns the queue listener installed on the root logger."""

    def __init__(self):
        self._log_listener: Optional[logging.handlers.QueueListener] = None

    def setup_logging(self, debug: bool = False) -> None:
        """
        Route root logging through a queue and silence chatty libraries.

        Args:
            debug: Whether to enable debug logging
        """
        self.stop()

        log_queue = Queue()
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))

        self._log_listener = logging.handlers.QueueListener(
            log_queue, console_handler, respect_handler_level=True
        )
        self._log_listener.start()

        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        root_logger.addHandler(logging.handlers.QueueHandler(log_queue))
        root_logger.setLevel(logging.DEBUG if debug else logging.INFO)

        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.DEBUG if debug else logging.WARNING)

    def stop(self) -> None:
        """Flush and stop the queue listener."""
        if self._log_listener:
            self._log_listener.stop()
            self._log_listener = None


# Global logging configuration instance
logging_config = ThreadSafeLoggingConfig()


def setup_logging(debug: bool = False) -> None:
    """Setup queue-based logging for the server process."""
    logging_config.setup_logging(debug)


def stop_logging() -> None:
    """Stop the logging listener and cleanup."""
    logging_config.stop()
