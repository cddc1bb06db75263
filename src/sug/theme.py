#!/usr/bin/env python

"""
Color palette for sug's human-facing output.

Suggestions printed for the shell front-end never go through rich; only
error lines and the debug report do.
"""

from typing import Optional

from rich.console import Console
from rich.theme import Theme as RichTheme

DEFAULT_THEME = {
    "accent": "#0066cc",
    "accent_alt": "#00cc66",
    "muted": "#777777",
    "error": "#ff5555",
    "success": "#00cc66",
}


def get_theme(overrides: Optional[dict] = None) -> dict:
    """Default palette with any configured overrides applied"""
    theme = dict(DEFAULT_THEME)
    theme.update(overrides or {})
    return theme


def create_console(overrides: Optional[dict] = None, **kwargs) -> Console:
    """Console using the sug palette; extra kwargs go straight to rich"""
    return Console(theme=RichTheme(get_theme(overrides)), **kwargs)
