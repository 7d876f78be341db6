"""
Mode Resolution

Raw mode identifiers differ between installations (openHAB-style numeric
items, older rule sets, Home Assistant hvac_mode strings). Each deployment
supplies a ModeTable; the controller only ever sees OperatingMode.
"""

import math
from collections.abc import Mapping
from typing import Any, Hashable

from .exceptions import ConfigurationError, UnknownModeError
from .models import OperatingMode


def _normalize_key(raw: Any) -> Hashable:
    """Normalize a raw mode identifier for lookup.

    Numeric identifiers (4, "4", " 4 ", 4.0) become int, other strings are
    stripped and lower-cased. Booleans get their own key so True/False never
    match the 1/0 entries.
    """
    if isinstance(raw, bool):
        return ("bool", raw)
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        if math.isfinite(raw) and raw.is_integer():
            return int(raw)
        return raw
    if isinstance(raw, str):
        text = raw.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return text.lower()
        if math.isfinite(number) and number.is_integer():
            return int(number)
        return text.lower()
    return raw


class ModeTable(Mapping):
    """Immutable mapping from raw mode identifier to OperatingMode."""

    def __init__(self, entries: Mapping[Any, OperatingMode], name: str = "custom"):
        self.name = name
        self._entries: dict[Hashable, OperatingMode] = {}
        for raw, mode in entries.items():
            if not isinstance(mode, OperatingMode):
                raise ConfigurationError(
                    f"Mode table '{name}' maps {raw!r} to {mode!r}, not an OperatingMode"
                )
            self._entries[_normalize_key(raw)] = mode

    def __getitem__(self, raw: Any) -> OperatingMode:
        return self._entries[_normalize_key(raw)]

    def __iter__(self):
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ModeTable({self.name!r}, {self._entries!r})"


# Modes: 0=OFF, 1=AUTO, 3=COOL, 4=HEAT
OPENHAB_HKV_MODES = ModeTable(
    {
        0: OperatingMode.OFF,
        1: OperatingMode.AUTO,
        3: OperatingMode.COOL,
        4: OperatingMode.HEAT,
    },
    name="openhab_hkv",
)

# Modes: 0=OFF, 1=HEAT, 2=COOL, 3=AUTO
LEGACY_MODES = ModeTable(
    {
        0: OperatingMode.OFF,
        1: OperatingMode.HEAT,
        2: OperatingMode.COOL,
        3: OperatingMode.AUTO,
    },
    name="legacy",
)

HOME_ASSISTANT_HVAC_MODES = ModeTable(
    {
        "off": OperatingMode.OFF,
        "heat": OperatingMode.HEAT,
        "cool": OperatingMode.COOL,
        "auto": OperatingMode.AUTO,
        "heat_cool": OperatingMode.AUTO,
    },
    name="home_assistant",
)

MODE_TABLES = {
    table.name: table
    for table in (OPENHAB_HKV_MODES, LEGACY_MODES, HOME_ASSISTANT_HVAC_MODES)
}


def resolve(raw_mode: Any, mapping: Mapping) -> OperatingMode:
    """Map a raw mode identifier to its canonical OperatingMode.

    Args:
        raw_mode: Identifier as read from the mode item (e.g. "4", 1, "heat")
        mapping: ModeTable (or plain mapping) supplied by the deployment

    Returns:
        The canonical OperatingMode

    Raises:
        UnknownModeError: If raw_mode is absent or not in the mapping
    """
    table = mapping if isinstance(mapping, ModeTable) else ModeTable(mapping)
    if raw_mode is None:
        raise UnknownModeError(raw_mode)
    try:
        return table[raw_mode]
    except (KeyError, TypeError):
        raise UnknownModeError(raw_mode)


def mode_table_from_config(
    encoding: str | None = None,
    mode_map: Mapping[Any, str] | None = None,
) -> ModeTable:
    """Build a ModeTable from configuration.

    Args:
        encoding: Name of a shipped table ("openhab_hkv", "legacy", "home_assistant")
        mode_map: Custom table of raw identifier -> mode name ("off", "heat", ...);
            takes precedence over encoding

    Raises:
        ConfigurationError: If neither is given, the encoding is unknown or a
            mode name is invalid
    """
    if mode_map:
        entries = {}
        for raw, mode_name in mode_map.items():
            try:
                entries[raw] = OperatingMode(str(mode_name).strip().lower())
            except ValueError:
                raise ConfigurationError(f"Invalid operating mode '{mode_name}' for raw mode {raw!r}")
        return ModeTable(entries)

    if not encoding:
        raise ConfigurationError("Either mode_encoding or mode_map must be configured")

    table = MODE_TABLES.get(encoding)
    if table is None:
        raise ConfigurationError(
            f"Unknown mode encoding '{encoding}' (known: {', '.join(sorted(MODE_TABLES))})"
        )
    return table
