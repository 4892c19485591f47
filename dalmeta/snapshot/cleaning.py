"""Cleanup for default-value expressions read from the catalog."""

from __future__ import annotations

WRAPPING_CHARACTERS = ("(", "'")


def _strip_one_layer(value: str) -> str:
    if len(value) > 1 and value[0] in WRAPPING_CHARACTERS:
        return value[1:-1]
    return value


def remove_wrapping_characters(value: str) -> str:
    """Remove the characters SQL Server wraps around a stored default.

    Ex: ``('Something')`` -> ``Something``, ``((0))`` -> ``0``.

    Exactly two single-layer strips are applied. The closing character is
    dropped without being checked, so unusual input such as ``(1)+(2)`` comes
    back truncated; existing generated code depends on this output.
    """
    return _strip_one_layer(_strip_one_layer(value))
