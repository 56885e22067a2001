import asyncio
import json
import logging
import logging.handlers
import os
import sys
import traceback
from collections.abc import Coroutine
from pathlib import Path
from typing import Any, TypeVar

import click
import yaml

from cacheconf.server.core.config import ConfigService, SettingsModel, create_config_service, load_settings


def get_env_flag(env_var: str, default: bool = False) -> bool:
    """Get a boolean flag from an environment variable.

    Args:
        env_var: Name of the environment variable
        default: Default value if environment variable is not set

    Returns:
        True if the environment variable is set to "1", "true", or "yes" (case insensitive)
        False otherwise
    """
    value = os.environ.get(env_var, "").lower()
    return value in ("1", "true", "yes") if value else default


def configure_logging(
    debug: bool = False,
    log_file: Path | None = None,
    log_level: str | None = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """Configure logging for all modules.

    Args:
        debug: Whether to enable debug logging (overrides log_level if True)
        log_file: Optional path to log file for persistent logging
        log_level: Log level string ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
        max_bytes: Maximum log file size in bytes before rotation (default: 10MB)
        backup_count: Number of rotated log files to keep (default: 5)
    """
    if not debug:
        debug = get_env_flag("CACHECONF_DEBUG")

    if debug:
        level = logging.DEBUG
    elif log_level:
        level = getattr(logging, log_level.upper(), logging.WARNING)
    else:
        level = logging.WARNING

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove any existing handlers to avoid duplicate messages
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    detailed_formatter = logging.Formatter(
        "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    simple_formatter = logging.Formatter("%(levelname)s:%(name)s:%(message)s")

    if log_file:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=max_bytes,
                backupCount=backup_count,
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(detailed_formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            # If file logging fails, warn but continue
            print(f"Warning: Failed to setup file logging to {log_file}: {e}", file=sys.stderr)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(simple_formatter)
    root_logger.addHandler(stream_handler)

    for logger_name in logging.root.manager.loggerDict:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        logger.propagate = True


def configure_logging_from_settings(settings: SettingsModel, debug: bool = False) -> None:
    """Configure logging using the `logging` section of the settings file."""
    logging_settings = settings.logging
    configure_logging(
        debug=debug,
        log_file=Path(logging_settings.path) if logging_settings.path else None,
        log_level=logging_settings.level,
        max_bytes=logging_settings.max_bytes,
        backup_count=logging_settings.backup_count,
    )


def open_config_service(
    config: str | None, debug: bool = False, tenant_id: int | None = None, resolve: bool = True
) -> ConfigService:
    """Load the settings, configure logging and build the configuration engine.

    Args:
        config: Explicit settings file path (--config)
        debug: Whether to enable debug logging
        tenant_id: Serve another tenant than the configured one
        resolve: Resolve the options right away

    Raises:
        SettingsError: If the settings file is invalid
    """
    settings = load_settings(Path(config) if config else None)
    configure_logging_from_settings(settings, debug=debug)
    if tenant_id is not None:
        settings = settings.model_copy(
            update={"deployment": settings.deployment.model_copy(update={"tenant_id": tenant_id})}
        )
    return create_config_service(settings, resolve=resolve)


def parse_assignment(assignment: str) -> tuple[str, Any]:
    """Split a KEY=VALUE argument, parsing VALUE as a YAML scalar or collection.

    Raises:
        click.BadParameter: If the argument has no '=' or VALUE is not valid YAML
    """
    key, sep, raw = assignment.partition("=")
    key = key.strip()
    if not sep or not key:
        raise click.BadParameter(f"Expected KEY=VALUE, got '{assignment}'")
    try:
        value = yaml.safe_load(raw) if raw.strip() else ""
    except yaml.YAMLError as e:
        raise click.BadParameter(f"Invalid value for {key}: {e}") from e
    return key, value


def format_error(error: Exception, debug: bool = False) -> dict[str, Any]:
    """Format an error for output.

    Args:
        error: The exception that occurred
        debug: Whether to include debug information

    Returns:
        Dict containing error information
    """
    error_info = {"error": str(error)}

    if debug:
        error_info["traceback"] = traceback.format_exc()
        error_info["type"] = error.__class__.__name__

    return error_info


def output_result(result: Any, json_output: bool = False, debug: bool = False) -> None:
    """Output a result in either JSON or human-readable format.

    Args:
        result: The result to output
        json_output: Whether to output in JSON format
        debug: Whether to include debug information
    """
    if json_output:
        print(json.dumps({"status": "ok", "result": result}, indent=2, default=str))
    else:
        if isinstance(result, list):
            for row in result:
                click.echo(row)
        else:
            click.echo(result)


def output_error(error: Exception, json_output: bool = False, debug: bool = False) -> None:
    """Output an error in either JSON or human-readable format.

    Args:
        error: The exception that occurred
        json_output: Whether to output in JSON format
        debug: Whether to include debug information
    """
    error_info = format_error(error, debug)

    if json_output:
        print(json.dumps({"status": "error", **error_info}, indent=2))
    else:
        click.echo(f"Error: {error_info['error']}", err=True)
        if debug and "traceback" in error_info:
            click.echo("\nTraceback:", err=True)
            click.echo(error_info["traceback"], err=True)

    raise click.Abort()


T = TypeVar("T")


def run_async_cli(coro: Coroutine[Any, Any, T]) -> T:
    """Execute an async CLI implementation from a synchronous entrypoint.

    Args:
        coro: The coroutine to run.

    Returns:
        The result of the coroutine.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    if loop.is_running():
        raise RuntimeError("Cannot run CLI coroutine while an event loop is already running.")

    future = asyncio.ensure_future(coro, loop=loop)
    return loop.run_until_complete(future)
