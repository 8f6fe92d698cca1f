"""Console output throttling and formatting for server processes."""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from typing import Callable, Tuple

DAEMON_MESSAGE_EVENT = "daemon message"
INSTALL_OUTPUT_EVENT = "install output"
INSTALL_STARTED_EVENT = "install started"
INSTALL_COMPLETED_EVENT = "install completed"
CONSOLE_OUTPUT_EVENT = "console output"
STATUS_EVENT = "status"
STATS_EVENT = "stats"
BACKUP_RESTORE_COMPLETED_EVENT = "backup restore completed"
BACKUP_COMPLETED_EVENT = "backup completed"
TRANSFER_LOGS_EVENT = "transfer logs"
TRANSFER_STATUS_EVENT = "transfer status"

_STRIP_ANSI = re.compile(
    r"[\x1b\x9b][\[\]()#;?]*(?:(?:(?:[a-zA-Z\d]*(?:;[a-zA-Z\d]*)*)?\x07)"
    r"|(?:(?:\d{1,4}(?:;\d{0,4})*)?[\dA-PRZcf-ntqry=><~]))",
    re.ASCII,
)

_COLOR_CODE = re.compile(r"\[[a-z0-9_-]+\]", re.IGNORECASE)

_COLORS = {
    "default": "39",
    "_default_": "49",
    "black": "30",
    "red": "31",
    "green": "32",
    "yellow": "33",
    "blue": "34",
    "magenta": "35",
    "cyan": "36",
    "light_gray": "37",
    "dark_gray": "90",
    "light_red": "91",
    "light_green": "92",
    "light_yellow": "93",
    "light_blue": "94",
    "light_magenta": "95",
    "light_cyan": "96",
    "white": "97",
    "_black_": "40",
    "_red_": "41",
    "_green_": "42",
    "_yellow_": "43",
    "_blue_": "44",
    "_magenta_": "45",
    "_cyan_": "46",
    "_light_gray_": "47",
    "_dark_gray_": "100",
    "_light_red_": "101",
    "_light_green_": "102",
    "_light_yellow_": "103",
    "_light_blue_": "104",
    "_light_magenta_": "105",
    "_light_cyan_": "106",
    "_white_": "107",
    "bold": "1",
    "dim": "2",
    "underline": "4",
    "blink_slow": "5",
    "blink_fast": "6",
    "invert": "7",
    "hidden": "8",
    "reset": "0",
    "reset_bold": "21",
}


def _colorize(text: str) -> str:
    colored = False

    def replace(match: "re.Match[str]") -> str:
        nonlocal colored
        code = _COLORS.get(match.group(0)[1:-1].lower())
        if code is None:
            return match.group(0)
        colored = True
        return f"\x1b[{code}m"

    result = _COLOR_CODE.sub(replace, text)
    return result + "\x1b[0m" if colored else result


def format_daemon_message(app_name: str, data: str) -> str:
    """Format a message so it shows in the console as coming from the daemon."""
    return _colorize(f"[yellow][bold][{app_name} Daemon]:[default] {data}")


def strip_ansi(data: str) -> str:
    """Remove ANSI escape sequences from a line of output."""
    return _STRIP_ANSI.sub("", data)


class TooMuchConsoleData(Exception):
    """Raised when a server keeps exceeding its console output limits."""

    def __init__(self) -> None:
        super().__init__("console is outputting too much data")


@dataclass
class ConsoleThrottles:
    """Limits on console output.

    ``lines`` may be output per ``line_reset_interval`` milliseconds before
    a throttle activation; ``maximum_trigger_count`` activations stop the
    server. One activation decays every ``decay_interval`` milliseconds.
    """

    lines: int
    maximum_trigger_count: int
    line_reset_interval: int
    decay_interval: int
    stop_grace_period: int = 15
    enabled: bool = True


class ConsoleThrottler:
    """Counts console lines and decides when output must be throttled."""

    def __init__(self, throttles: ConsoleThrottles) -> None:
        self.throttles = throttles
        self._lock = threading.Lock()
        self._activations = 0
        self._count = 0
        self._throttled = False

    @property
    def activations(self) -> int:
        with self._lock:
            return self._activations

    @property
    def count(self) -> int:
        with self._lock:
            return self._count

    def reset(self) -> None:
        """Clear the line count, the activations and the throttled flag."""
        with self._lock:
            self._count = 0
            self._activations = 0
            self._throttled = False

    def throttled(self) -> bool:
        """Return True while console output is being throttled."""
        with self._lock:
            return self._throttled

    def increment(self, on_trigger: Callable[[], None]) -> None:
        """Count one line of output.

        When the line limit is reached a throttle is activated and
        ``on_trigger`` is called; once the activations reach the maximum,
        TooMuchConsoleData is raised instead.
        """
        if not self.throttles.enabled:
            return
        with self._lock:
            self._count += 1
            if self._count < self.throttles.lines or self._throttled:
                return
            self._throttled = True
            self._activations += 1
            exceeded = self._activations >= self.throttles.maximum_trigger_count
        if exceeded:
            raise TooMuchConsoleData()
        on_trigger()

    def reset_lines(self) -> None:
        """End the current line counting period and lift the throttle."""
        with self._lock:
            self._throttled = False
            self._count = 0

    def decay(self) -> int:
        """Remove one activation, never going below zero, and return the count."""
        with self._lock:
            if self._activations > 0:
                self._activations -= 1
            return self._activations

    def start_timer(self, stop_event: threading.Event) -> Tuple[threading.Thread, threading.Thread]:
        """Run the line reset and decay timers until ``stop_event`` is set."""

        def every(interval_ms: int, action: Callable[[], object]) -> threading.Thread:
            interval = interval_ms / 1000

            def run() -> None:
                while not stop_event.wait(interval):
                    action()

            thread = threading.Thread(target=run, daemon=True)
            thread.start()
            return thread

        return (
            every(self.throttles.line_reset_interval, self.reset_lines),
            every(self.throttles.decay_interval, self.decay),
        )