"""Terminal UI utilities — spinner."""

from __future__ import annotations

import contextlib
import itertools
import sys
import threading


@contextlib.contextmanager
def spinner(enabled: bool | None = None):
    """Yield a callable that updates an inline spinner with status text.

    Off-TTY (CI logs) each status is printed on its own line instead.
    """
    if enabled is None:
        enabled = sys.stderr.isatty()

    if not enabled:
        def _plain(msg: str) -> None:
            sys.stderr.write(f"[prepare-resources] {msg}\n")
            sys.stderr.flush()

        yield _plain
        return

    frames = itertools.cycle(["⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏"])
    message = ""
    lock = threading.Lock()
    done = threading.Event()

    def _update(msg: str) -> None:
        nonlocal message
        with lock:
            message = msg

    def _draw() -> None:
        while not done.is_set():
            with lock:
                text = message
            if text:
                sys.stderr.write(f"\r{next(frames)} {text}\033[K")
                sys.stderr.flush()
            done.wait(0.08)
        sys.stderr.write("\r\033[K")
        sys.stderr.flush()

    t = threading.Thread(target=_draw, daemon=True)
    t.start()
    try:
        yield _update
    finally:
        done.set()
        t.join()
