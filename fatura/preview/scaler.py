"""Auto-fit scaling of a page into an on-screen viewport.

The scale only shrinks (never above 1.0) and is uniform. Printing never goes
through here; the on-screen scale has no effect on the printed page.
"""
from __future__ import annotations

import math
from typing import Callable, List, Optional


DEFAULT_EPSILON = 1e-3


def _usable(v: object) -> bool:
    try:
        f = float(v)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return False
    return math.isfinite(f) and f > 0


def compute_scale(content_width: float, content_height: float, viewport_width: float, viewport_height: float) -> float:
    """min(viewport/content per axis, 1.0); 1.0 whenever a dimension is zero, negative or non-finite."""
    if not all(_usable(v) for v in (content_width, content_height, viewport_width, viewport_height)):
        return 1.0
    scale = min(
        float(viewport_width) / float(content_width),
        float(viewport_height) / float(content_height),
        1.0,
    )
    if not math.isfinite(scale) or scale <= 0:
        return 1.0
    return scale


class AutoFitScaler:
    """Tracks content and viewport sizes and publishes the fitted scale.

    Each observation recomputes the scale from the latest known sizes; a new
    value is published only when it differs from the current one by at least
    `epsilon`. After close() observations are ignored and nothing is published.
    """

    def __init__(self, on_change: Optional[Callable[[float], None]] = None, epsilon: float = DEFAULT_EPSILON) -> None:
        self.scale = 1.0
        self.epsilon = epsilon
        self.closed = False
        self._content = (0.0, 0.0)
        self._viewport = (0.0, 0.0)
        self._listeners: List[Callable[[float], None]] = []
        if on_change is not None:
            self._listeners.append(on_change)

    def subscribe(self, listener: Callable[[float], None]) -> None:
        self._listeners.append(listener)

    def content_resized(self, width: float, height: float) -> bool:
        if self.closed:
            return False
        self._content = (width, height)
        return self.refresh()

    def viewport_resized(self, width: float, height: float) -> bool:
        if self.closed:
            return False
        self._viewport = (width, height)
        return self.refresh()

    def observe(self, content_width: float, content_height: float, viewport_width: float, viewport_height: float) -> bool:
        if self.closed:
            return False
        self._content = (content_width, content_height)
        self._viewport = (viewport_width, viewport_height)
        return self.refresh()

    def refresh(self) -> bool:
        """Recompute from the last known sizes. Returns True when the published scale changed."""
        if self.closed:
            return False
        nxt = compute_scale(*self._content, *self._viewport)
        if abs(nxt - self.scale) < self.epsilon:
            return False
        self.scale = nxt
        for listener in list(self._listeners):
            listener(nxt)
        return True

    def close(self) -> None:
        self.closed = True
        self._listeners.clear()
