"""
Color-mode preference service.

A light/dark/system preference with a persisted override. It is
injected where needed rather than held globally, and it shares no state
with form sessions.

    preference = ThemePreference(JsonFilePreferenceStore(".theme.json"))
    preference.init()
    preference.set_mode("dark")
"""

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Literal, Protocol, get_args

from auto_form.config import get_config

logger = logging.getLogger(__name__)

ThemeMode = Literal["light", "dark", "system"]

THEME_MODES: tuple[str, ...] = get_args(ThemeMode)

ModeListener = Callable[[str, str], None]


def _check_mode(mode: str) -> str:
    if mode not in THEME_MODES:
        raise ValueError(f"Invalid theme mode {mode!r}; expected one of {THEME_MODES}")
    return mode


class PreferenceStore(Protocol):
    """Persistence for the chosen mode."""

    def load(self) -> str | None: ...

    def save(self, mode: str) -> None: ...


class MemoryPreferenceStore:
    """In-process store, for tests and embedded use."""

    def __init__(self, mode: str | None = None):
        self.mode = mode

    def load(self) -> str | None:
        return self.mode

    def save(self, mode: str) -> None:
        self.mode = mode


class JsonFilePreferenceStore:
    """Persist the mode as {"theme": mode} in a JSON file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> str | None:
        if not self.path.exists():
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable theme file {self.path}: {e}")
            return None
        mode = data.get("theme") if isinstance(data, dict) else None
        return mode if mode in THEME_MODES else None

    def save(self, mode: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({"theme": mode}, f)


class ThemePreference:
    """
    Light/dark/system mode with a persisted override.

    Listeners receive (mode, effective_mode) whenever the effective
    appearance may have changed: on set_mode(), and on system changes
    while the mode is "system".
    """

    def __init__(
        self,
        store: PreferenceStore | None = None,
        system_prefers_dark: Callable[[], bool] | None = None,
    ):
        self.store = store or MemoryPreferenceStore()
        self._system_prefers_dark = system_prefers_dark or (lambda: False)
        self._mode: str = "system"
        self._listeners: list[ModeListener] = []

    def init(self) -> str:
        """Read the persisted mode (if any) and apply it."""
        stored = self.store.load()
        if stored is not None:
            self._mode = _check_mode(stored)
        logger.debug(f"Theme mode initialized to {self._mode}")
        self._notify()
        return self._mode

    def get_mode(self) -> str:
        return self._mode

    def set_mode(self, mode: str) -> None:
        self._mode = _check_mode(mode)
        self.store.save(mode)
        self._notify()

    def effective_mode(self) -> str:
        """The applied appearance: "light" or "dark"."""
        if self._mode == "system":
            return "dark" if self._system_prefers_dark() else "light"
        return self._mode

    def notify_system_change(self) -> None:
        """Call when the system preference changes; only matters in system mode."""
        if self._mode == "system":
            self._notify()

    def subscribe(self, listener: ModeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        effective = self.effective_mode()
        for listener in list(self._listeners):
            listener(self._mode, effective)


def create_theme_preference(
    path: str | Path | None = None,
    system_prefers_dark: Callable[[], bool] | None = None,
) -> ThemePreference:
    """Build a file-backed preference at `path` (defaults to config.theme_file)."""
    store = JsonFilePreferenceStore(path or get_config().theme_file)
    return ThemePreference(store, system_prefers_dark)
