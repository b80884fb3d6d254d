# Overview: Background thread that reaps expired admin sessions.

from __future__ import annotations

import threading

from flask import Flask

from ..extensions import db
from . import session_service


class SessionSweeper:
    """
    Deletes expired AdminSession rows every `interval_seconds`.

    Runs in a daemon thread inside its own app context. This is the only
    work the service does outside a request.
    """

    def __init__(self, app: Flask, interval_seconds: int):
        self.app = app
        self.interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run,
            name="admin-session-sweeper",
            daemon=True,
        )
        self._thread.start()
        self.app.logger.info("Session sweeper started (every %ss)", self.interval_seconds)

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def sweep_once(self) -> int:
        with self.app.app_context():
            try:
                deleted = session_service.cleanup_expired_sessions()
            except Exception:
                self.app.logger.exception("Session sweep failed")
                db.session.rollback()
                return 0
            finally:
                db.session.remove()
        if deleted:
            self.app.logger.info("Removed %d expired admin session(s)", deleted)
        return deleted

    def _run(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            self.sweep_once()


def start_session_sweeper(app: Flask) -> SessionSweeper | None:
    """Start the sweeper unless disabled by config or running under tests."""
    if app.config.get("TESTING") or not app.config.get("SESSION_SWEEP_ENABLED", True):
        return None

    sweeper = app.extensions.get("session_sweeper")
    if sweeper is None:
        sweeper = SessionSweeper(app, app.config["SESSION_SWEEP_INTERVAL_SECONDS"])
        app.extensions["session_sweeper"] = sweeper
    sweeper.start()
    return sweeper
