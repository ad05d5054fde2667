"""Shared configuration validation helpers."""

from __future__ import annotations

import re

_REPOSITORY_NAME = re.compile(r"^[A-Za-z0-9_.-]+$")


def require_positive_int(value: int, field_name: str) -> int:
    """Validate a positive integer input and return it."""
    if value <= 0:
        raise ValueError(f"{field_name} must be greater than zero.")
    return value


def require_non_empty(value: str, field_name: str) -> str:
    """Validate a non-blank string input and return it stripped."""
    cleaned = value.strip()
    if not cleaned:
        raise ValueError(f"{field_name} must be provided.")
    return cleaned


def require_repository_name(value: str, field_name: str) -> str:
    """Validate an owner or repository name as accepted by the hosting API."""
    cleaned = require_non_empty(value, field_name)
    if _REPOSITORY_NAME.fullmatch(cleaned) is None:
        raise ValueError(f"{field_name} contains unsupported characters: {cleaned}")
    return cleaned


def parse_labels(values: list[str] | tuple[str, ...] | None) -> tuple[str, ...]:
    """Split comma separated label options into a de-duplicated tuple.

    Splitting an empty string yields a single empty label, so blanks are dropped.
    """
    if not values:
        return ()
    labels: list[str] = []
    for value in values:
        for item in value.split(","):
            label = item.strip()
            if label and label not in labels:
                labels.append(label)
    return tuple(labels)
