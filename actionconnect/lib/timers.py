"""
Cancellable delayed callbacks on top of Socket.IO background tasks.

Socket.IO background tasks cannot be killed from the outside, so a timer is
a background task that sleeps and then checks a cancel flag before running
its callback. Under gevent this costs one greenlet per pending timer.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from flask import Flask, current_app


class TimerHandle:
    def __init__(self, delay_seconds: float) -> None:
        self.delay_seconds = delay_seconds
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)


class BackgroundScheduler:
    def __init__(self, socketio, app: Optional[Flask] = None) -> None:
        self.socketio = socketio
        self.app = app

    def schedule(
        self,
        delay_seconds: float,
        callback: Callable[[], None],
        handle: Optional[TimerHandle] = None,
    ) -> TimerHandle:
        if handle is None:
            handle = TimerHandle(delay_seconds)
        app = self.app or current_app._get_current_object()

        def background_task(app_instance: Flask) -> None:
            self.socketio.sleep(delay_seconds)
            if handle.cancelled:
                return
            handle.fired = True
            try:
                with app_instance.app_context():
                    callback()
            except Exception:
                logging.exception("scheduled callback failed")

        self.socketio.start_background_task(background_task, app)
        return handle
