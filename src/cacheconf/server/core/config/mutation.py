"""Mutation of stored options.

`MutationGateway` is the only path that writes operator changes back to the
store. Changes are applied on top of the options as currently stored, not on
the live option set, which may be older than the store in a long-running
process. The live set is left as it is and the changes take effect on the
next resolution.

`option_diff` and `upgrade_network_options` reconcile a stored option set
with the current defaults when the schema version changes.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol

from jsonschema import Draft202012Validator

from cacheconf.sdk.storage import OptionStore, conf_name

from .errors import OptionValidationError
from .models import ChangeResult
from .normalize import encode_value, normalize_option, to_bool
from .schema import VERSION_KEY, OptionSchema, OptionScope

if TYPE_CHECKING:
    from .resolver import ConfigResolver

logger = logging.getLogger(__name__)

SET_REQUEST = "set"


class SettingsValidator(Protocol):
    """Checks a complete candidate option set before it is persisted."""

    def validate(self, candidate: dict[str, Any]) -> dict[str, Any]:
        """Return the option set to persist.

        Raises:
            OptionValidationError: If the candidate is rejected
        """
        ...


class SchemaValidator:
    """Validates candidates against the JSON Schema of the option schema.

    Structured options are normalized to their stored shape first, so the
    admin form's column shape is accepted as input.
    """

    def __init__(self, schema: OptionSchema) -> None:
        self._validator = Draft202012Validator(schema.json_schema(OptionScope.SITE))

    def validate(self, candidate: dict[str, Any]) -> dict[str, Any]:
        normalized = {key: normalize_option(key, value) for key, value in candidate.items()}
        errors = sorted(self._validator.iter_errors(normalized), key=lambda e: list(e.path))
        if errors:
            messages = [
                f"{'/'.join(str(p) for p in error.path) or '<root>'}: {error.message}"
                for error in errors
            ]
            raise OptionValidationError(f"Invalid options: {'; '.join(messages)}", messages)
        return normalized


def _coerce(existing: Any, value: Any) -> Any:
    if isinstance(existing, bool):
        return to_bool(value)
    if isinstance(existing, int) and isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    if isinstance(existing, dict) and isinstance(value, dict):
        return {**existing, **value}
    return value


def _same(a: Any, b: Any) -> bool:
    # 1 == True in Python; a type change is a change
    return type(a) is type(b) and a == b


class MutationGateway:
    """Applies operator change requests to the stored options.

    Args:
        resolver: Resolver holding the current option set
        validator: Candidate validator; `SchemaValidator` when omitted

    Example:
        >>> gateway = MutationGateway(resolver)
        >>> gateway.apply_changes({"cache-mobile": "1"}).status
        'changed'
    """

    def __init__(self, resolver: ConfigResolver, validator: SettingsValidator | None = None) -> None:
        self.resolver = resolver
        self.validator = validator or SchemaValidator(resolver.schema)

    @property
    def store(self) -> OptionStore:
        return self.resolver.store

    def apply_changes(self, requested: Mapping[str, Any]) -> ChangeResult:
        """Validate and persist the requested changes.

        Unknown keys are dropped. Flags accept any loosely truthy value,
        mappings are merged into the existing value and everything else is
        replaced. Only the changed keys, and keys the validator rewrote, are
        written.

        Raises:
            OptionValidationError: If the validator rejects the candidate
        """
        current = self.resolver.load_options(dry_run=True)
        candidate = dict(current)
        changed: dict[str, Any] = {}

        for key, value in requested.items():
            if key not in current or key == VERSION_KEY:
                logger.debug(f"[conf] Dropping change of unknown option [{key}]")
                continue
            new_value = _coerce(current[key], value)
            if _same(new_value, current[key]):
                continue
            candidate[key] = new_value
            changed[key] = new_value

        if not changed:
            logger.debug("[conf] No option changed, nothing to save")
            return ChangeResult(status="unchanged")

        validated = self.validator.validate(candidate)

        schema = self.resolver.schema
        for key, value in validated.items():
            if key not in changed and key in current and _same(value, current[key]):
                continue
            if self.store.update(conf_name(key), encode_value(schema.kind_of(key), value)):
                logger.info(f"[conf] Saved option [{key}]")

        return ChangeResult(status="changed", changed=changed, options=validated)

    def handle(self, request_type: str, changes: Mapping[str, Any]) -> ChangeResult:
        """Entry point for change requests of the admin layer."""
        if request_type != SET_REQUEST:
            logger.debug(f"[conf] Ignoring change request of type [{request_type}]")
            return ChangeResult(status="ignored")
        return self.apply_changes(changes)


def option_diff(defaults: Mapping[str, Any], current: Mapping[str, Any], version: str) -> dict[str, Any]:
    """Reconcile an option set with the default key set.

    Keys missing from `current` get their default, keys unknown to `defaults`
    are removed and `_version` is stamped. Pure; persisting is up to the
    caller.
    """
    result = {key: value for key, value in current.items() if key in defaults}

    for key in current:
        if key not in defaults:
            logger.debug(f"[conf] [Removed] {key}")

    for key, value in defaults.items():
        if key not in result:
            logger.debug(f"[conf] [Added] {key} = {value!r}")
            result[key] = value

    result[VERSION_KEY] = version
    return result


def upgrade_network_options(
    store: OptionStore,
    schema: OptionSchema,
    network_options: Mapping[str, Any],
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Bring a stored network option set up to the running schema.

    Nothing is written when the set already carries the running version and
    every network key.

    Returns:
        The reconciled network option set
    """
    defaults = schema.network_default_vals(environ=os.environ if environ is None else environ)
    if network_options.get(VERSION_KEY) == schema.version and len(network_options) == len(defaults):
        return dict(network_options)

    logger.info(
        f"[conf] Upgrading network options from version "
        f"{network_options.get(VERSION_KEY) or '<none>'} to {schema.version}"
    )
    upgraded = option_diff(defaults, network_options, schema.version)
    for key, value in upgraded.items():
        store.update_network(conf_name(key), encode_value(schema.kind_of(key, OptionScope.NETWORK), value))
    return upgraded
