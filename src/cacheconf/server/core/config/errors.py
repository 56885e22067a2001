"""Exceptions raised by the configuration engine.

Only a few conditions are exceptional here. Unknown option keys, requests
that change nothing and bootstrap-file problems are reported through return
values instead; see `ChangeResult` and `BootstrapStatus`. Storage failures are
never wrapped and reach the caller unmodified.
"""


class ConfigError(Exception):
    """Base class for configuration engine errors."""


class SettingsError(ConfigError):
    """The settings file could not be parsed or did not validate."""


class OptionValidationError(ConfigError):
    """A candidate option set was rejected by the validator.

    Attributes:
        errors: One message per rejected key
    """

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []
