"""Patch engine configuration."""

import logging
import os

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class PatchConfig(BaseModel):
    """Knobs for the patch engine."""

    # Deleting an animation also deletes every transition that points at it
    prune_inbound_transitions: bool = Field(default=True)

    # Index past the end appends instead of failing
    clamp_index: bool = Field(default=True)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value not in _FALSE_VALUES:
        logger.warning(f"Unrecognised value {raw!r} for {name}, treating it as false")
    return False


def get_patch_config() -> PatchConfig:
    """Get patch configuration from environment variables.

    Environment variables:
        KFM_PATCH_PRUNE_INBOUND: Delete inbound transitions with an animation (default: true)
        KFM_PATCH_CLAMP_INDEX: Clamp out-of-range indexes to append (default: true)
    """
    return PatchConfig(
        prune_inbound_transitions=_env_flag("KFM_PATCH_PRUNE_INBOUND", True),
        clamp_index=_env_flag("KFM_PATCH_CLAMP_INDEX", True),
    )
