"""
Environment value helpers.
"""

from __future__ import annotations

TRUTHY_VALUES = {'1', 'true', 'yes', 'on'}


def sanitize_env_value(raw: str | None, fallback: str = "") -> str:
    value = (raw if raw is not None else fallback).strip()
    if len(value) >= 2 and ((value[0] == '"' and value[-1] == '"') or (value[0] == "'" and value[-1] == "'")):
        value = value[1:-1]
    # Guard against literal escaped control chars leaked by some env providers.
    return value.replace("\\n", "").replace("\\r", "").strip()


def env_flag(raw: str | None, default: bool = False) -> bool:
    """Interpret an env value like ``1``/``true``/``yes`` as a boolean."""
    value = sanitize_env_value(raw)
    if not value:
        return default
    return value.lower() in TRUTHY_VALUES


def split_csv(raw: str | None) -> list[str]:
    return [item.strip() for item in sanitize_env_value(raw).split(',') if item.strip()]
