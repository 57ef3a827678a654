"""Device configuration."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from .values import ValidationPolicy

logger = logging.getLogger(__name__)

DEFAULT_DEVICE_NAME = "SBMidi"
DEFAULT_HISTORY_SIZE = 256

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class DeviceConfig:
    """Settings for a virtual MIDI device.

    ``name`` is the base endpoint name; the host sees ``"<name> Out"``
    and ``"<name> In"``.
    """

    name: str = DEFAULT_DEVICE_NAME
    policy: ValidationPolicy = ValidationPolicy.SILENT
    history_size: int = DEFAULT_HISTORY_SIZE

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "policy": self.policy.value,
            "history_size": self.history_size,
        }

    @classmethod
    def from_env(cls) -> DeviceConfig:
        """Build a config from ``VIRTUAL_MIDI_*`` environment variables."""
        strict = os.environ.get("VIRTUAL_MIDI_STRICT", "").strip().lower() in _TRUTHY
        return cls(
            name=os.environ.get("VIRTUAL_MIDI_NAME") or DEFAULT_DEVICE_NAME,
            policy=ValidationPolicy.STRICT if strict else ValidationPolicy.SILENT,
            history_size=_history_from_env(),
        )


def _history_from_env() -> int:
    history = os.environ.get("VIRTUAL_MIDI_HISTORY", "").strip()
    if not history:
        return DEFAULT_HISTORY_SIZE
    try:
        size = int(history)
    except ValueError:
        size = -1
    if size < 0:
        logger.warning(
            "Ignoring VIRTUAL_MIDI_HISTORY=%r, using %d",
            history,
            DEFAULT_HISTORY_SIZE,
        )
        return DEFAULT_HISTORY_SIZE
    return size
