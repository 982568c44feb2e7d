"""Colored sync logger — ANSI-colored console logging for the mutation engine.

Provides a SyncLogger with color-coded output per sync stage, making it
easy to follow an intent from local apply to remote confirmation in the
terminal.

Color scheme:
    🟢 Green   — Create / Confirmed
    🟡 Yellow  — Update
    🟣 Magenta — Delete / Cascade
    🔵 Blue    — Remote gateway calls
    🟠 Cyan    — Signal conversion / Hydration
    🔴 Red     — Errors
    ⚪ Gray    — Details / Stats
"""

import logging
import time
from contextlib import contextmanager
from typing import Any


# ── ANSI Color Codes ─────────────────────────────────────────────────

class _Colors:
    """ANSI escape codes for terminal colors."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    WHITE = "\033[97m"
    GRAY = "\033[90m"


# ── Sync Stage Definitions ───────────────────────────────────────────

class SyncStage:
    """Predefined sync stages with colors and icons."""

    CREATE = ("CREATE", _Colors.GREEN, "➕")
    UPDATE = ("UPDATE", _Colors.YELLOW, "✏️")
    DELETE = ("DELETE", _Colors.MAGENTA, "🗑️")
    CASCADE = ("CASCADE", _Colors.MAGENTA, "🌊")
    REMOTE = ("REMOTE", _Colors.BLUE, "📡")
    CONVERT = ("CONVERT", _Colors.CYAN, "🔁")
    HYDRATE = ("HYDRATE", _Colors.CYAN, "💧")
    REVERT = ("REVERT", _Colors.WHITE, "↩️")
    ERROR = ("ERROR", _Colors.RED, "❌")
    CONFIRMED = ("CONFIRMED", _Colors.GREEN, "✅")


# ── SyncLogger ───────────────────────────────────────────────────────

class SyncLogger:
    """Color-coded logger for dispatcher, conversion and hydration stages.

    Usage:
        slog = SyncLogger("MutationDispatcher")
        slog.step_start(SyncStage.DELETE, "Deleting year", id="y1")
        slog.detail("Cascade removed 3 records")
        slog.step_complete(SyncStage.DELETE, "Removed locally")
    """

    def __init__(self, component_name: str):
        self._logger = logging.getLogger(component_name)
        self._component = component_name

    def step_start(self, stage: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        label, color, icon = stage
        formatted = (
            f"{color}{_Colors.BOLD}{icon} [{label}]{_Colors.RESET} "
            f"{color}{message}{_Colors.RESET}"
        )
        formatted += self._details(kwargs, _Colors.GRAY)
        self._logger.info(formatted)

    def step_complete(self, stage: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        label, color, icon = stage
        formatted = (
            f"{color}{icon} [{label}]{_Colors.RESET} "
            f"{_Colors.GREEN}✓ {message}{_Colors.RESET}"
        )
        formatted += self._details(kwargs, _Colors.GRAY)
        self._logger.info(formatted)

    def step_error(
        self,
        stage: tuple[str, str, str],
        message: str,
        error: BaseException | None = None,
        **kwargs: Any,
    ) -> None:
        """Log a failed step in red, with the exception type when given."""
        label, _, icon = stage
        formatted = (
            f"{_Colors.RED}{_Colors.BOLD}❌ [{label}]{_Colors.RESET} "
            f"{_Colors.RED}{message}{_Colors.RESET}"
        )
        if error:
            formatted += f" {_Colors.DIM}→ {type(error).__name__}: {error}{_Colors.RESET}"
        formatted += self._details(kwargs, _Colors.GRAY)
        self._logger.error(formatted)

    def detail(self, message: str, **kwargs: Any) -> None:
        formatted = f"   {_Colors.GRAY}├─ {message}{_Colors.RESET}"
        formatted += self._details(kwargs, _Colors.DIM)
        self._logger.info(formatted)

    def stats(self, **kwargs: Any) -> None:
        parts = [f"{k}: {v}" for k, v in kwargs.items()]
        self._logger.info(f"   {_Colors.GRAY}📈 {' | '.join(parts)}{_Colors.RESET}")

    @contextmanager
    def timed_step(self, stage: tuple[str, str, str], message: str, **kwargs: Any):
        """Context manager that logs start/end with elapsed time.

        Usage:
            with slog.timed_step(SyncStage.HYDRATE, "Loading primary store"):
                records = await gateway.list(kind)
        """
        self.step_start(stage, message, **kwargs)
        start = time.perf_counter()
        try:
            yield
        except Exception as e:
            elapsed = time.perf_counter() - start
            self.step_error(stage, f"{message} — failed after {elapsed:.2f}s", error=e)
            raise
        else:
            elapsed = time.perf_counter() - start
            self.step_complete(stage, f"{message} — {elapsed:.2f}s", **kwargs)

    @staticmethod
    def _details(kwargs: dict[str, Any], color: str) -> str:
        if not kwargs:
            return ""
        details = " | ".join(f"{k}={v}" for k, v in kwargs.items())
        return f" {color}({details}){_Colors.RESET}"
