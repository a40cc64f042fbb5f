"""
Theme preference.

One service and one storage key hold the light/dark preference.
"""

from typing import MutableMapping, Optional

from mortgage_tools.config import get_settings

STORAGE_KEY = "theme"
THEMES = ("light", "dark")


class ThemeService:
    """Reads and writes the theme preference in a key-value store."""

    def __init__(self, storage: MutableMapping[str, str], default: Optional[str] = None):
        default = default or get_settings().default_theme
        if default not in THEMES:
            raise ValueError(f"Unknown theme: {default}")
        self.storage = storage
        self.default = default

    @property
    def current(self) -> str:
        theme = self.storage.get(STORAGE_KEY)
        return theme if theme in THEMES else self.default

    def set(self, theme: str) -> str:
        if theme not in THEMES:
            raise ValueError(f"Unknown theme: {theme}")
        self.storage[STORAGE_KEY] = theme
        return theme

    def toggle(self) -> str:
        return self.set("light" if self.current == "dark" else "dark")
