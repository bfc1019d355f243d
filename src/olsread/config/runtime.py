"""Runtime configuration for the OLS reader."""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, MutableMapping

import yaml

from ..core.models import MAX_CHANNELS


@dataclass(slots=True)
class ReaderConfig:
    """
    Settings that control how capture files are opened and checked.

    The channel bound can only be tightened: the OLS format never carries
    more than 32 channels.
    """

    encoding: str = "utf-8"
    errors: str = "replace"
    max_channels: int = MAX_CHANNELS
    log_ignored_lines: bool = False

    def sanitized(self) -> ReaderConfig:
        """Return a copy with values coerced into their allowed ranges."""
        return ReaderConfig(
            encoding=str(self.encoding or "utf-8"),
            errors=str(self.errors or "replace"),
            max_channels=max(1, min(MAX_CHANNELS, int(self.max_channels))),
            log_ignored_lines=bool(self.log_ignored_lines),
        )


def _recognized_fields() -> set[str]:
    """Names of the reader settings a YAML file may set."""
    return {f.name for f in fields(ReaderConfig)}


def _normalize_mapping(data: Mapping[str, Any]) -> MutableMapping[str, Any]:
    """Merge a nested ``reader:`` block into the top level so both YAML shapes load."""
    if "reader" in data and isinstance(data["reader"], Mapping):
        merged: MutableMapping[str, Any] = {}
        for key, value in data.items():
            if key == "reader":
                merged.update(value)
            else:
                merged[key] = value
        return merged
    return dict(data)


def config_from_mapping(data: Mapping[str, Any] | None) -> ReaderConfig:
    """
    Build reader settings from ``data``.

    Keys the reader does not know are dropped and ``max_channels`` is clamped
    to the 32-channel OLS limit.
    """
    if not data:
        return ReaderConfig()
    normalized = _normalize_mapping(data)
    known = _recognized_fields()
    payload = {key: normalized[key] for key in normalized.keys() & known}
    return ReaderConfig(**payload).sanitized()


def load_config(path: str | Path | None) -> ReaderConfig:
    """
    Load reader settings from a YAML file at ``path``.

    Missing files fall back to default :class:`ReaderConfig` (UTF-8 with
    replacement of undecodable bytes, 32 channels).
    """
    if path is None:
        return ReaderConfig()
    cfg_path = Path(path)
    if not cfg_path.exists():
        return ReaderConfig()
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, Mapping):
        raise ValueError(f"Expected mapping in {cfg_path}, got {type(raw).__name__}")
    return config_from_mapping(raw)


__all__ = ["ReaderConfig", "config_from_mapping", "load_config"]
