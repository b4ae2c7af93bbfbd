"""Process entry point running the API under uvicorn.

SIGINT/SIGTERM, uncaught exceptions in worker threads and unhandled asyncio
faults all go through the same path: uvicorn stops accepting connections and
drains in-flight requests, the lifespan closes the pool, and a watchdog timer
force-exits the process with status 1 if that takes longer than
``SHUTDOWN_GRACE_SECONDS``.  An exception escaping the server loop itself ends
``main()`` with exit status 1.

Usage:
    python -m favorites_api.server
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
import threading
from types import FrameType

import uvicorn

from favorites_api.main import create_app
from favorites_api.settings import AppSettings, get_settings

logger = logging.getLogger(__name__)


class GracefulServer(uvicorn.Server):
    """uvicorn server that arms a forced-exit watchdog once shutdown begins."""

    def __init__(self, config: uvicorn.Config, *, grace_seconds: float) -> None:
        super().__init__(config)
        self.grace_seconds = grace_seconds
        self._watchdog: threading.Timer | None = None

    def handle_exit(self, sig: int, frame: FrameType | None) -> None:
        if not self.should_exit:
            logger.info("Signal %s received. Starting graceful shutdown...", sig)
        super().handle_exit(sig, frame)
        self.begin_shutdown()

    def begin_shutdown(self) -> None:
        """Request a graceful stop and start the watchdog (idempotent)."""

        self.should_exit = True
        if self._watchdog is not None:
            return
        self._watchdog = threading.Timer(self.grace_seconds, self._force_exit)
        self._watchdog.daemon = True
        self._watchdog.start()

    def cancel_watchdog(self) -> None:
        if self._watchdog is not None:
            self._watchdog.cancel()
            self._watchdog = None

    def _force_exit(self) -> None:
        logger.error("Could not close connections in time, forcefully shutting down")
        logging.shutdown()
        os._exit(1)

    async def serve(self, sockets=None) -> None:
        loop = asyncio.get_running_loop()
        loop.set_exception_handler(self._handle_loop_exception)
        await super().serve(sockets=sockets)

    def _handle_loop_exception(
        self, loop: asyncio.AbstractEventLoop, context: dict[str, object]
    ) -> None:
        loop.default_exception_handler(context)
        logger.error("Unhandled asyncio error: %s", context.get("message"))
        self.begin_shutdown()


def build_server(settings: AppSettings | None = None) -> GracefulServer:
    settings = settings or get_settings()
    config = uvicorn.Config(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        timeout_graceful_shutdown=int(settings.shutdown_grace_seconds),
    )
    return GracefulServer(config, grace_seconds=settings.shutdown_grace_seconds)


def _install_thread_excepthook(server: GracefulServer) -> None:
    # An uncaught error in the main thread surfaces from ``server.run()`` in main().
    def _thread_hook(args: threading.ExceptHookArgs) -> None:
        logger.critical(
            "Uncaught exception in thread %s",
            args.thread.name if args.thread else "?",
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
        )
        server.begin_shutdown()

    threading.excepthook = _thread_hook


def main() -> int:
    """CLI entry point."""

    server = build_server()
    _install_thread_excepthook(server)
    try:
        server.run()
    except Exception:
        logger.critical("Uncaught exception, server stopped", exc_info=True)
        return 1
    finally:
        server.cancel_watchdog()
    logger.info("Graceful shutdown completed")
    return 0 if server.started else 1


if __name__ == "__main__":
    sys.exit(main())
