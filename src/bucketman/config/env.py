from __future__ import annotations

TRUTHY = {"1", "true", "yes", "on"}


def parse_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in TRUTHY
