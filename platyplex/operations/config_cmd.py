"""``config list|get|set`` on the YAML configuration file."""

from __future__ import annotations

from typing import Optional

from platyplex.config.config_loader import ConfigLoader
from platyplex.config.constants import CONFIG_MODES, LEDGER_ENVIRONMENTS
from platyplex.core.errors import ValidationError
from platyplex.ui.prompts import ui_print


def run_config(
    loader: ConfigLoader,
    mode: str = "list",
    name: Optional[str] = None,
    value: Optional[str] = None,
) -> None:
    """List, read or change configuration values addressed by dotted names.

    Raises:
        ValidationError: Unknown mode, a missing name/value, an unknown key
            for ``get``, or an unsupported ledger environment for ``set``.
    """
    if mode not in CONFIG_MODES:
        raise ValidationError(f"Unknown config mode '{mode}' (expected list, get or set)")

    if mode == "get":
        if not name:
            raise ValidationError("Name of config must be specified")
        try:
            ui_print(f"{name}: {loader.get_value(name)}")
        except KeyError as e:
            raise ValidationError(f"Unknown config name: {name}") from e
        return

    if mode == "set":
        if not name or value is None:
            raise ValidationError("Name and value must be specified")
        if name == "ledger.env" and value not in LEDGER_ENVIRONMENTS:
            raise ValidationError(
                f"Invalid env '{value}' (expected one of: {', '.join(LEDGER_ENVIRONMENTS)})"
            )
        previous = loader.set_value(name, value)
        ui_print(f"Old {name}: {previous}")
        ui_print(f"New {name}: {value}")
        try:
            loader.save()
        except OSError as e:
            raise ValidationError(f"Could not write {loader.config_path}: {e}") from e
        return

    for key, current in loader.list_values():
        ui_print(f"{key}: {current}")
