"""Configuration resolution and layering engine.

Resolution of the per-tenant option set (defaults, stored values, network
overrides, runtime hooks), capability flags, schema migration, and the
mutation gateway writing operator changes back to storage.
"""

from .bootstrap import BootstrapStatus, read_bootstrap_flag, set_bootstrap_flag
from .errors import ConfigError, OptionValidationError, SettingsError
from .flags import FlagPublisher
from .hooks import OptionHooks
from .migration import Migrator, needs_migration
from .models import CapabilityFlags, ChangeResult, Deployment, SettingsModel
from .mutation import MutationGateway, SchemaValidator, SettingsValidator, option_diff, upgrade_network_options
from .resolver import ConfigResolver
from .schema import SCHEMA_VERSION, VAL_OFF, VAL_ON, VAL_ON2, OptionKind, OptionSchema, OptionScope, OptionSpec
from .service import ConfigService, create_config_service
from .settings import load_settings

__all__ = [
    "BootstrapStatus",
    "CapabilityFlags",
    "ChangeResult",
    "ConfigError",
    "ConfigResolver",
    "ConfigService",
    "Deployment",
    "FlagPublisher",
    "Migrator",
    "MutationGateway",
    "OptionHooks",
    "OptionKind",
    "OptionSchema",
    "OptionScope",
    "OptionSpec",
    "OptionValidationError",
    "SCHEMA_VERSION",
    "SchemaValidator",
    "SettingsError",
    "SettingsModel",
    "SettingsValidator",
    "VAL_OFF",
    "VAL_ON",
    "VAL_ON2",
    "create_config_service",
    "load_settings",
    "needs_migration",
    "option_diff",
    "read_bootstrap_flag",
    "set_bootstrap_flag",
    "upgrade_network_options",
]
