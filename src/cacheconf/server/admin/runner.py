"""
Uvicorn runner for admin API on Unix domain socket.

This module manages the lifecycle of the admin API server running on a Unix socket.
"""

import asyncio
import logging
import os
import signal
import socket
from pathlib import Path

import uvicorn

from .app import create_admin_app
from .service import AdminService

logger = logging.getLogger(__name__)


class AdminAPIRunner:
    """
    Runs the admin API via uvicorn on a Unix domain socket.

    Handles socket creation, permissions, and lifecycle management.
    The socket is created with 0600 permissions (owner-only access).
    """

    def __init__(
        self,
        admin_service: AdminService,
        socket_path: str | Path = "/run/cacheconf/admin.sock",
    ):
        """
        Initialize the admin API runner.

        Args:
            admin_service: The admin service wrapping the configuration engine
            socket_path: Path where Unix socket will be created
        """
        self.admin_service = admin_service
        self._socket_path = Path(socket_path)
        self._uvicorn_server: uvicorn.Server | None = None
        self._task: asyncio.Task | None = None

    @property
    def socket_path(self) -> Path:
        return self._socket_path

    async def start(self) -> None:
        """
        Start the admin API server.

        Creates the Unix socket, sets permissions, and starts uvicorn
        in the background using the current event loop.

        Must be called from async context.
        """
        try:
            self._socket_path.parent.mkdir(parents=True, exist_ok=True)

            # Remove stale socket
            if self._socket_path.exists():
                logger.info(f"[admin] Removing stale socket at {self._socket_path}")
                self._socket_path.unlink()

            app = create_admin_app(self.admin_service)

            # Bind with restrictive permissions before uvicorn accepts connections
            sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
            try:
                sock.bind(str(self._socket_path))
                os.chmod(self._socket_path, 0o600)
                sock.listen()
            except OSError:
                sock.close()
                raise

            config = uvicorn.Config(
                app=app,
                log_level="debug" if self.admin_service.debug else "warning",
                access_log=False,
            )
            self._uvicorn_server = uvicorn.Server(config)

            loop = asyncio.get_running_loop()
            self._task = loop.create_task(self._uvicorn_server.serve(sockets=[sock]))

            logger.info(f"[admin] Admin API started at {self._socket_path}")

        except Exception as e:
            logger.error(f"[admin] Failed to start admin API: {e}", exc_info=True)
            self._cleanup_socket()
            raise

    async def stop(self) -> None:
        """
        Stop the admin API server.

        Signals uvicorn to shut down gracefully and cleans up the socket file.
        """
        if not self._uvicorn_server:
            return

        logger.info("[admin] Stopping admin API...")
        self._uvicorn_server.should_exit = True

        if self._task:
            try:
                await asyncio.wait_for(self._task, timeout=5.0)
            except asyncio.TimeoutError:
                logger.warning("[admin] Timeout waiting for API shutdown")
                if not self._task.done():
                    self._task.cancel()
                    try:
                        await self._task
                    except asyncio.CancelledError:
                        logger.debug("[admin] API task cancelled")

        self._cleanup_socket()
        self._uvicorn_server = None
        self._task = None
        logger.info("[admin] Admin API stopped")

    async def serve_until_signalled(self) -> None:
        """Run until SIGINT or SIGTERM, then stop."""
        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, stop_event.set)

        await self.start()
        try:
            await stop_event.wait()
        finally:
            await self.stop()

    def _cleanup_socket(self) -> None:
        """Remove the socket file if it exists."""
        try:
            if self._socket_path.exists():
                self._socket_path.unlink()
                logger.debug(f"[admin] Removed socket file: {self._socket_path}")
        except OSError as e:
            logger.debug(f"[admin] Error removing socket file: {e}")
