"""Base Pydantic models for cacheconf.

All models that describe configuration snapshots inherit from
`SdkBaseModel` so they share the same validation behaviour:

- Strict field validation (no extra fields allowed)
- Immutable instances, so a snapshot can be handed to any consumer

Example:
    >>> from cacheconf.sdk.models import SdkBaseModel
    >>>
    >>> class Snapshot(SdkBaseModel):
    ...     tenant_id: int
    ...     ready: bool = False
    >>>
    >>> Snapshot(tenant_id=1).model_dump()
    {'tenant_id': 1, 'ready': False}
"""

from pydantic import BaseModel, ConfigDict


class SdkBaseModel(BaseModel):
    """Base model for all cacheconf Pydantic models.

    - extra="forbid": Rejects any fields not defined in the model
    - frozen=True: Makes instances immutable

    Models that must stay mutable should not inherit from this base.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)
