import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from riskdesk.config.logging import logger

class AlertKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"

@dataclass(frozen=True)
class Alert:
    message: str
    kind: AlertKind
    visible: bool = True

HIDDEN = Alert(message="", kind=AlertKind.SUCCESS, visible=False)

Listener = Callable[[Alert], None]

def _daemon_timer(interval: float, function: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(interval, function)
    timer.daemon = True
    return timer

class AlertChannel:
    """
    Transient user feedback, independent of business data.

    Only one alert is visible at a time. Every show() cancels the pending
    hide timer before scheduling its own, so repeated calls never leave
    stray timers behind.
    """

    def __init__(
        self,
        hide_after: float = 3.0,
        timer_factory: Callable[[float, Callable[[], None]], threading.Timer] = _daemon_timer,
    ):
        self.hide_after = hide_after
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._current = HIDDEN
        self._timer = None
        self._listeners: List[Listener] = []

    @property
    def current(self) -> Alert:
        return self._current

    def subscribe(self, listener: Listener):
        self._listeners.append(listener)

    def _notify(self, alert: Alert):
        for listener in list(self._listeners):
            try:
                listener(alert)
            except Exception as e:
                logger.error(f"Alert listener failed: {e}")

    def show(self, message: str, kind: AlertKind = AlertKind.SUCCESS) -> Alert:
        alert = Alert(message=message, kind=AlertKind(kind))
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()

            timer = None

            def hide():
                self._expire(timer)

            timer = self._timer_factory(self.hide_after, hide)
            self._timer = timer
            self._current = alert
            timer.start()

        self._notify(alert)
        return alert

    def _expire(self, timer):
        with self._lock:
            # 被新的 show() 取代的 timer 不做事
            if timer is not self._timer:
                return
            self._timer = None
            self._current = HIDDEN
        self._notify(HIDDEN)

    def hide(self):
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            was_visible = self._current.visible
            self._current = HIDDEN
        if was_visible:
            self._notify(HIDDEN)

    def close(self):
        """Cancel the pending hide timer without notifying listeners."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def success(self, message: str) -> Alert:
        return self.show(message, AlertKind.SUCCESS)

    def error(self, message: str) -> Alert:
        return self.show(message, AlertKind.ERROR)
