"""macharden - console transcript."""
from __future__ import annotations

import logging
import os
import sys
from typing import Dict, Iterable, Optional, TextIO

from .subsystems.types import Action, OutcomeRecord

# Every line shown to the operator is mirrored here so the run log holds the
# full transcript.
transcript_logger = logging.getLogger("macharden.transcript")


# ═══════════════════════════════════════════════════════════════════════════════
# ANSI Color & Style Codes
# ═══════════════════════════════════════════════════════════════════════════════

class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"

    @staticmethod
    def rgb(r: int, g: int, b: int) -> str:
        """24-bit foreground color."""
        return f"\033[38;2;{r};{g};{b}m"


class Theme:
    """Theme colors for macharden."""

    ACCENT = Colors.rgb(97, 86, 140)
    SUCCESS = Colors.rgb(107, 158, 120)
    WARNING = Colors.rgb(201, 168, 87)
    ERROR = Colors.rgb(184, 90, 90)
    TEXT = Colors.rgb(242, 242, 242)
    TEXT_DIM = Colors.rgb(129, 139, 140)
    BORDER = Colors.rgb(71, 84, 89)

    @staticmethod
    def action_color(action: Action) -> str:
        return {
            Action.NONE: Theme.TEXT_DIM,
            Action.APPLIED: Theme.SUCCESS,
            Action.FAILED: Theme.ERROR,
            Action.UNSUPPORTED: Theme.WARNING,
        }.get(action, Theme.TEXT)


# ═══════════════════════════════════════════════════════════════════════════════
# Terminal Utilities
# ═══════════════════════════════════════════════════════════════════════════════

def supports_color(stream: TextIO | None = None) -> bool:
    """Check if terminal supports color output."""
    if os.getenv("NO_COLOR"):
        return False
    if os.getenv("FORCE_COLOR"):
        return True
    stream = stream or sys.stdout
    return hasattr(stream, "isatty") and stream.isatty()


class Icons:
    """Unicode icons for CLI output."""

    PASS = "✓"
    FAIL = "✗"
    WARNING = "!"
    APPLY = "*"
    ARROW = "→"
    BULLET = "•"

    @staticmethod
    def action_icon(action: Action) -> str:
        return {
            Action.NONE: Icons.PASS,
            Action.APPLIED: Icons.APPLY,
            Action.FAILED: Icons.FAIL,
            Action.UNSUPPORTED: Icons.WARNING,
        }.get(action, "?")


# ═══════════════════════════════════════════════════════════════════════════════
# Console
# ═══════════════════════════════════════════════════════════════════════════════

class Console:
    """Sectioned console output, mirrored into the run log."""

    def __init__(
        self,
        color: bool | None = None,
        stream: TextIO | None = None,
        err_stream: TextIO | None = None,
    ):
        self.stream = stream or sys.stdout
        self.err_stream = err_stream or sys.stderr
        self.use_color = color if color is not None else supports_color(self.stream)

    def _c(self, text: str, color: str) -> str:
        """Colorize text if colors enabled."""
        if self.use_color:
            return f"{color}{text}{Colors.RESET}"
        return text

    def _emit(self, plain: str, styled: Optional[str] = None, *, error: bool = False) -> None:
        stream = self.err_stream if error else self.stream
        print(styled if (styled is not None and self.use_color) else plain, file=stream)
        stream.flush()
        transcript_logger.info("%s", plain)

    def line(self, text: str = "") -> None:
        """Print raw text, e.g. collaborator output."""
        for part in text.splitlines() or [""]:
            self._emit(part)

    def banner(self, text: str) -> None:
        self._emit(f"== {text} ==", self._c(f"== {text} ==", Colors.BOLD))

    def section(self, title: str) -> None:
        """Print a section header."""
        self._emit("")
        self._emit(f"---- {title} ----", self._c(f"---- {title} ----", Theme.ACCENT + Colors.BOLD))

    def info(self, message: str) -> None:
        self._emit(f"[i] {message}", f"{self._c('[i]', Theme.TEXT_DIM)} {message}")

    def action(self, message: str) -> None:
        self._emit(f"[*] {message}", f"{self._c('[*]', Theme.ACCENT)} {message}")

    def success(self, message: str) -> None:
        self._emit(f"[{Icons.PASS}] {message}", f"{self._c(f'[{Icons.PASS}]', Theme.SUCCESS)} {message}")

    def warning(self, message: str) -> None:
        self._emit(f"[!] {message}", f"{self._c('[!]', Theme.WARNING)} {message}")

    def hint(self, message: str) -> None:
        self._emit(f"[{Icons.ARROW}] {message}", f"{self._c(f'[{Icons.ARROW}]', Theme.ACCENT)} {message}")

    def error(self, message: str) -> None:
        """Print an error on the error stream."""
        self._emit(f"[-] {message}", f"{self._c('[-]', Theme.ERROR)} {message}", error=True)

    def key_value(self, key: str, value: str) -> None:
        self._emit(f"{key}: {value}", f"{self._c(key + ':', Theme.TEXT_DIM)} {value}")

    def blank(self) -> None:
        self._emit("")

    def outcome(self, label: str, record: OutcomeRecord) -> None:
        """Print a single reconciliation outcome."""
        icon = Icons.action_icon(record.action_taken)
        plain = (
            f"  {icon} {label}: {record.prior_state.value} -> "
            f"{record.desired_state.value} [{record.action_taken.value}] {record.detail}"
        ).rstrip()
        color = Theme.action_color(record.action_taken)
        styled = (
            f"  {self._c(icon, color)} {self._c(label, Theme.TEXT)}: "
            f"{record.prior_state.value} {Icons.ARROW} {record.desired_state.value} "
            f"{self._c('[' + record.action_taken.value + ']', color)} "
            f"{self._c(record.detail, Theme.TEXT_DIM)}"
        )
        self._emit(plain, styled)

    def summary_box(self, stats: Dict[str, int], title: str = "HARDENING SUMMARY") -> None:
        """Print a summary statistics box."""
        width = 50
        self._emit("")
        self._emit(f"+{'-' * width}+", self._c(f"+{'-' * width}+", Theme.BORDER))
        self._emit(f"| {title.center(width - 2)} |", f"| {self._c(title.center(width - 2), Theme.ACCENT + Colors.BOLD)} |")
        self._emit(f"+{'-' * width}+", self._c(f"+{'-' * width}+", Theme.BORDER))
        rows = (
            ("Subsystems", stats.get("total", 0), Theme.TEXT),
            ("Already compliant / left as-is", stats.get("none", 0), Theme.TEXT_DIM),
            ("Applied", stats.get("applied", 0), Theme.SUCCESS),
            ("Failed", stats.get("failed", 0), Theme.ERROR),
            ("Unsupported", stats.get("unsupported", 0), Theme.WARNING),
        )
        for label, count, color in rows:
            text = f"{label}:".ljust(width - 9) + f"{count:>5}"
            self._emit(f"|  {text}  |", f"|  {label}:".ljust(width - 6) + f"{self._c(f'{count:>5}', color)}  |")
        self._emit(f"+{'-' * width}+", self._c(f"+{'-' * width}+", Theme.BORDER))

    def bullet_list(self, items: Iterable[str]) -> None:
        for item in items:
            self._emit(f"  {Icons.BULLET} {item}")
