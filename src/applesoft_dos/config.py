"""Load DOS storage and monitor settings from TOML files."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

import tomllib

from .errors import DOSConfigError
from .session import MonitorFlags
from .store import DEFAULT_PREFIX


_MONITOR_KEYS: Mapping[str, MonitorFlags] = {
    "commands": MonitorFlags.COMMANDS,
    "input": MonitorFlags.INPUT,
    "output": MonitorFlags.OUTPUT,
}


@dataclass(frozen=True)
class DOSConfig:
    """Resolved settings used by :func:`applesoft_dos.dos.bootstrap_dos`."""

    storage_prefix: str = DEFAULT_PREFIX
    storage_path: Optional[Path] = None
    fetch_path: Optional[Path] = None
    monitor: MonitorFlags = MonitorFlags.NONE

    @classmethod
    def default(cls) -> "DOSConfig":
        return cls()


def load_dos_config(config_path: Path) -> DOSConfig:
    """Parse and validate the configuration stored at ``config_path``."""

    with config_path.open("rb") as stream:
        data = tomllib.load(stream)

    base = config_path.parent
    storage = _table(data, "storage")
    fetch = _table(data, "fetch")

    prefix = storage.get("prefix", DEFAULT_PREFIX)
    if not isinstance(prefix, str):
        raise DOSConfigError("storage.prefix must be a string")

    return DOSConfig(
        storage_prefix=prefix,
        storage_path=_optional_path(storage.get("path"), base=base, key="storage.path"),
        fetch_path=_optional_path(fetch.get("path"), base=base, key="fetch.path"),
        monitor=_parse_monitor(_table(data, "monitor")),
    )


def _table(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    table = data.get(name, {})
    if not isinstance(table, Mapping):
        raise DOSConfigError(f"[{name}] section must be a mapping")
    return table


def _optional_path(raw_path: Any, *, base: Path, key: str) -> Optional[Path]:
    if raw_path is None:
        return None
    if not isinstance(raw_path, str) or not raw_path.strip():
        raise DOSConfigError(f"{key} must be a non-empty string")
    path = Path(raw_path).expanduser()
    if not path.is_absolute():
        path = base / path
    return path.resolve()


def _parse_monitor(table: Mapping[str, Any]) -> MonitorFlags:
    flags = MonitorFlags.NONE
    for key, value in table.items():
        flag = _MONITOR_KEYS.get(key)
        if flag is None:
            raise DOSConfigError(f"unknown monitor setting: {key!r}")
        if not isinstance(value, bool):
            raise DOSConfigError(f"monitor.{key} must be a boolean")
        if value:
            flags |= flag
    return flags


__all__ = ["DOSConfig", "load_dos_config"]
