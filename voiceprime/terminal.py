"""
Terminal collaborator: print prompts and read single key presses.
SPACE toggles recording, ESC aborts the current take, q / Ctrl-C / EOF quits.
"""

from __future__ import annotations

import enum
import logging
import os
import sys
from typing import TextIO

logger = logging.getLogger(__name__)

KEY_READ_BYTES = 32


class KeyEvent(enum.Enum):
    TOGGLE = "toggle"
    ABORT = "abort"
    QUIT = "quit"
    OTHER = "other"


def key_event_from_char(ch: str) -> KeyEvent:
    """Map one key press. A bare ESC aborts; ESC-prefixed sequences (arrows, F-keys) are ignored."""
    if len(ch) > 1:
        if ch.startswith("\x1b"):
            return KeyEvent.OTHER
        ch = ch[0]
    if ch == " ":
        return KeyEvent.TOGGLE
    if ch == "\x1b":
        return KeyEvent.ABORT
    if ch in ("", "\x03", "\x04", "q", "Q"):
        return KeyEvent.QUIT
    return KeyEvent.OTHER


class Terminal:
    """
    Reads one key at a time without waiting for Enter.
    POSIX: stdin switched to cbreak mode per read; Windows: msvcrt.getwch().
    When stdin is not a TTY (piped input), characters are read line-buffered.
    """

    def __init__(self, stdin: TextIO | None = None, stdout: TextIO | None = None) -> None:
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout

    def show_prompt(self, text: str) -> None:
        self._stdout.write(text.rstrip("\n") + "\n")
        self._stdout.flush()

    def next_key_event(self) -> KeyEvent:
        """Block until a key is pressed. No timeout."""
        try:
            ch = self._read_char()
        except KeyboardInterrupt:
            return KeyEvent.QUIT
        event = key_event_from_char(ch)
        logger.debug("Key %r -> %s", ch, event.name)
        return event

    def _read_char(self) -> str:
        if os.name == "nt" and self._stdin is sys.stdin:
            import msvcrt

            return msvcrt.getwch()
        if not self._stdin.isatty():
            return self._stdin.read(1)
        import termios
        import tty

        fd = self._stdin.fileno()
        saved = termios.tcgetattr(fd)
        try:
            tty.setcbreak(fd)
            # One read returns every byte of a key press, so ESC [ A arrives whole
            return os.read(fd, KEY_READ_BYTES).decode("utf-8", errors="replace")
        finally:
            termios.tcsetattr(fd, termios.TCSADRAIN, saved)
