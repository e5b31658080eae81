from __future__ import annotations

import threading
import uuid
from typing import Callable, Dict

from .view import GeneratorView

ViewFactory = Callable[[], GeneratorView]


class ViewRegistry:
    """In-memory map from browser session keys to their generator views."""

    def __init__(self, factory: ViewFactory) -> None:
        self._factory = factory
        self._views: Dict[str, GeneratorView] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._views)

    def new_key(self) -> str:
        return uuid.uuid4().hex

    def get(self, key: str) -> GeneratorView | None:
        with self._lock:
            return self._views.get(key)

    def get_or_create(self, key: str) -> GeneratorView:
        with self._lock:
            view = self._views.get(key)
            if view is None:
                view = self._factory()
                self._views[key] = view
            return view

    def discard(self, key: str) -> None:
        with self._lock:
            view = self._views.pop(key, None)
        if view is not None:
            view.unmount()

    def clear(self) -> None:
        with self._lock:
            views = list(self._views.values())
            self._views.clear()
        for view in views:
            view.unmount()


__all__ = ["ViewRegistry"]
