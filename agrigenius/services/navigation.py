"""Top-level screen selection and the chat overlay toggle."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)

Hook = Callable[[], None]


class View(str, Enum):
    DASHBOARD = "dashboard"
    WEATHER = "weather"
    MARKET = "market"
    PROFILE = "profile"

    @classmethod
    def parse(cls, value: "View | str | None") -> "View":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            logger.debug("Unknown view %r, falling back to dashboard", value)
            return cls.DASHBOARD


class ViewRouter:
    """Hold the active screen; each screen's controller lives only while it is shown."""

    def __init__(self, initial: View | str = View.DASHBOARD) -> None:
        self.active = View.parse(initial)
        self.chat_open = False
        self._mounts: dict[View, Hook] = {}
        self._unmounts: dict[View, Hook] = {}
        self._mounted = False

    def register(self, view: View | str, mount: Optional[Hook] = None, unmount: Optional[Hook] = None) -> None:
        target = View.parse(view)
        if mount is not None:
            self._mounts[target] = mount
        if unmount is not None:
            self._unmounts[target] = unmount
        if target is self.active and self._mounted and mount is not None:
            mount()

    def start(self) -> View:
        """Mount the initial screen."""
        if not self._mounted:
            self._run(self._mounts, self.active)
            self._mounted = True
        return self.active

    def navigate(self, view: View | str) -> View:
        target = View.parse(view)
        if target is self.active and self._mounted:
            return target
        if self._mounted:
            self._run(self._unmounts, self.active)
        logger.debug("Navigating %s -> %s", self.active.value, target.value)
        self.active = target
        self._run(self._mounts, target)
        self._mounted = True
        return target

    def toggle_chat(self) -> bool:
        self.chat_open = not self.chat_open
        return self.chat_open

    def close(self) -> None:
        if self._mounted:
            self._run(self._unmounts, self.active)
            self._mounted = False
        self.chat_open = False

    def to_dict(self) -> dict[str, object]:
        return {
            "active": self.active.value,
            "chat_open": self.chat_open,
            "views": [view.value for view in View],
        }

    @staticmethod
    def _run(hooks: dict[View, Hook], view: View) -> None:
        hook = hooks.get(view)
        if hook is not None:
            hook()


__all__ = ["View", "ViewRouter"]
