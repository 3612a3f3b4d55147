"""Interactive message loop.

One thread (the caller's) owns the controller and processes messages from
an inbox queue one at a time.  Commands returned by the controller run on a
small worker pool and post their result back to the inbox; a reader thread
turns keystrokes into ``KeyPressed`` messages.
"""

from __future__ import annotations

import logging
import queue
import shutil
import sys
import termios
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable

import click

from devsweep.core.controller import Controller, Snapshot
from devsweep.models.messages import Command, KeyPressed, Message, Resized
from devsweep.ui import render

log = logging.getLogger(__name__)

# How often the loop wakes up without messages to notice terminal resizes.
_IDLE_POLL = 0.25

_KEYS = {
    "\x1b[A": "up",
    "\x1bOA": "up",
    "\x1b[B": "down",
    "\x1bOB": "down",
    "\r": "enter",
    "\n": "enter",
    "\x1b": "esc",
    "\x03": "ctrl+c",
    " ": " ",
}


def translate_key(raw: str) -> str | None:
    """Map a raw ``click.getchar`` result to a controller key name."""
    if raw in _KEYS:
        return _KEYS[raw]
    if len(raw) == 1 and raw.isprintable():
        return raw.lower()
    return None


class App:
    """Runs a controller until it asks to quit."""

    def __init__(
        self,
        controller: Controller,
        *,
        workers: int = 4,
        renderer: Callable[[Snapshot], str] = render,
        read_keys: bool = True,
    ) -> None:
        self.controller = controller
        self._renderer = renderer
        self._read_keys_enabled = read_keys
        self._inbox: queue.Queue[Message] = queue.Queue()
        self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="devsweep-worker")

    def post(self, msg: Message) -> None:
        """Queue a message for the loop; safe from any thread."""
        self._inbox.put(msg)

    def dispatch(self, commands: Iterable[Command]) -> None:
        for command in commands:
            self._executor.submit(self._run_command, command)

    def _run_command(self, command: Command) -> None:
        try:
            msg = command()
        except Exception:
            log.exception("Background command failed: %r", command)
            return
        if msg is not None:
            self._inbox.put(msg)

    def _read_keys(self) -> None:
        while not self.controller.quit:
            try:
                raw = click.getchar()
            except (KeyboardInterrupt, EOFError):
                self.post(KeyPressed("ctrl+c"))
                return
            if (key := translate_key(raw)) is not None:
                self.post(KeyPressed(key))

    def _check_size(self) -> bool:
        size = shutil.get_terminal_size()
        if (size.columns, size.lines) == (self.controller.width, self.controller.height):
            return False
        self.dispatch(self.controller.update(Resized(size.columns, size.lines)))
        return True

    def _redraw(self) -> None:
        click.clear()
        click.echo(self._renderer(self.controller.snapshot()), nl=False)

    def step(self, timeout: float | None = None) -> bool:
        """Process one message from the inbox; False when none arrived in time."""
        try:
            msg = self._inbox.get(timeout=timeout)
        except queue.Empty:
            return False
        self.dispatch(self.controller.update(msg))
        return True

    def run(self) -> Controller:
        # The key reader is still blocked in raw mode when the loop quits.
        fd = sys.stdin.fileno() if sys.stdin.isatty() else None
        saved = termios.tcgetattr(fd) if fd is not None else None
        if self._read_keys_enabled:
            threading.Thread(target=self._read_keys, name="devsweep-keys", daemon=True).start()
        try:
            self._check_size()
            self._redraw()
            while not self.controller.quit:
                changed = self.step(timeout=_IDLE_POLL)
                if self._check_size() or changed:
                    self._redraw()
        finally:
            if saved is not None:
                termios.tcsetattr(fd, termios.TCSADRAIN, saved)
            # A deletion already in flight is left to finish on its worker.
            self._executor.shutdown(wait=False, cancel_futures=True)
        return self.controller
