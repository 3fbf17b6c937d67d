"""Colored workflow logger for the billing, attendance and broadcast workflows.

Each stage gets its own color and icon so a visit can be followed from
check-in through deduction in a terminal:

    📍 CHECK_IN / 🩺 VISIT   blue
    🧮 DEDUCT                yellow
    ⚠️ RECONCILE             magenta
    📵 CALL_OFF / 📣 ALERT   cyan
"""

import logging
from typing import Any, NamedTuple

RESET = "\033[0m"
BOLD = "\033[1m"
DIM = "\033[2m"
RED = "\033[91m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
MAGENTA = "\033[95m"
CYAN = "\033[96m"
GRAY = "\033[90m"


class Stage(NamedTuple):
    label: str
    color: str
    icon: str


class WorkflowStage:
    CHECK_IN = Stage("CHECK_IN", BLUE, "📍")
    VISIT = Stage("VISIT", BLUE, "🩺")
    DEDUCTION = Stage("DEDUCT", YELLOW, "🧮")
    RECONCILE = Stage("RECONCILE", MAGENTA, "⚠️")
    CALL_OFF = Stage("CALL_OFF", CYAN, "📵")
    BROADCAST = Stage("ALERT", CYAN, "📣")


def _fields(values: dict[str, Any], tone: str = GRAY) -> str:
    if not values:
        return ""
    joined = " | ".join(f"{key}={value}" for key, value in values.items())
    return f" {tone}({joined}){RESET}"


class WorkflowLogger:
    """Stage-colored logger bound to one workflow component.

    Usage:
        wlog = WorkflowLogger("VisitBillingService")
        wlog.step_start(WorkflowStage.VISIT, "Completing visit", visit_id=visit_id)
        wlog.step_complete(WorkflowStage.DEDUCTION, "Units deducted", remaining=16)
    """

    def __init__(self, component: str):
        self.component = component
        self._logger = logging.getLogger(component)

    def step_start(self, stage: Stage, message: str, **fields: Any) -> None:
        self._emit(logging.INFO, stage, f"{stage.color}{message}", fields, bold=True)

    def step_complete(self, stage: Stage, message: str, **fields: Any) -> None:
        self._emit(logging.INFO, stage, f"{GREEN}✓ {message}", fields)

    def step_warning(self, stage: Stage, message: str, **fields: Any) -> None:
        """A condition someone has to follow up on; the workflow itself went through."""
        self._emit(logging.WARNING, stage, f"{stage.color}{message}", fields, bold=True)

    def step_error(self, stage: Stage, message: str, error: Exception | None = None) -> None:
        cause = f" {DIM}→ {type(error).__name__}: {error}{RESET}" if error else ""
        self._logger.error(f"{RED}{BOLD}❌ [{stage.label}]{RESET} {RED}{message}{RESET}{cause}")

    def detail(self, message: str, **fields: Any) -> None:
        self._logger.info(f"   {GRAY}├─ {message}{RESET}{_fields(fields, DIM)}")

    def _emit(self, level: int, stage: Stage, body: str, fields: dict[str, Any], *, bold: bool = False) -> None:
        weight = BOLD if bold else ""
        head = f"{stage.color}{weight}{stage.icon} [{stage.label}]{RESET}"
        self._logger.log(level, f"{head} {body}{RESET}{_fields(fields)}")
