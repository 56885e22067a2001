"""
Admin API service implementation.

Wraps the process' `ConfigService` so endpoints don't need to know its
internals.
"""

import threading
from pathlib import Path
from typing import Any

from cacheconf.server.core.config import BootstrapStatus, ConfigService

from .models import ChangeResponse, ConfigResponse


class AdminService:
    """Admin operations over one `ConfigService`.

    Endpoints that write run in the server threadpool; writes to the store
    and the bootstrap file are serialized.
    """

    def __init__(self, config: ConfigService, debug: bool = False):
        self._config = config
        self._debug = debug
        self._write_lock = threading.Lock()

    @property
    def debug(self) -> bool:
        """Whether debug mode is enabled."""
        return self._debug

    @property
    def socket_path(self) -> Path:
        return Path(self._config.settings.admin.socket)

    def get_config_snapshot(self) -> ConfigResponse:
        return ConfigResponse(
            tenant_id=self._config.resolver.deployment.tenant_id,
            schema_version=self._config.schema_version,
            multisite=self._config.resolver.deployment.multisite,
            flags=self._config.flags,
            options=self._config.options(),
        )

    def has_option(self, key: str) -> bool:
        return key in self._config.options()

    def get_option(self, key: str) -> Any:
        return self._config.option(key)

    def change_options(self, request_type: str, changes: dict[str, Any]) -> ChangeResponse:
        """Apply a change request.

        Raises:
            OptionValidationError: If the changed option set is invalid
        """
        with self._write_lock:
            result = self._config.change(request_type, changes)
        messages = {
            "changed": f"Saved {len(result.changed)} option(s)",
            "unchanged": "No option changed",
            "ignored": f"Request type '{request_type}' ignored",
        }
        return ChangeResponse(status=result.status, changed=result.changed, message=messages[result.status])

    def set_bootstrap_flag(self, enable: bool) -> tuple[BootstrapStatus, bool | None]:
        """Write the bootstrap flag and read it back.

        Raises:
            ConfigError: If no bootstrap file is configured
        """
        with self._write_lock:
            status = self._config.set_bootstrap_flag(enable)
            current = self._config.read_bootstrap_flag() if status is BootstrapStatus.OK else None
        return status, current
