"""Process exit helpers for the host."""
import logging
import os
import signal
import threading

logger = logging.getLogger(__name__)


def request_shutdown() -> None:
    """Ask the server for a graceful shutdown; the supervisor restarts it."""
    logger.warning("Requesting shutdown of process %s", os.getpid())
    os.kill(os.getpid(), signal.SIGTERM)


def exit_after_grace(code: int, grace_seconds: float) -> threading.Timer:
    """Force the process down if a normal shutdown hasn't finished in time."""

    def _force() -> None:
        logger.error("Forcing exit with code %s after %.1fs grace period", code, grace_seconds)
        os._exit(code)

    timer = threading.Timer(grace_seconds, _force)
    timer.daemon = True
    timer.start()
    return timer
