"""Schema snapshot loading package."""

from .loader import DEFAULT_CONNECTION_STRING, SqlDatabase, load_snapshot
from .cleaning import remove_wrapping_characters
from .pipeline import load_configured_snapshot

__all__ = [
    "DEFAULT_CONNECTION_STRING",
    "SqlDatabase",
    "load_snapshot",
    "load_configured_snapshot",
    "remove_wrapping_characters",
]
