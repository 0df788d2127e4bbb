"""Startup orchestration for application bootstrap."""

import logging
from dataclasses import dataclass
from typing import Literal, Tuple

import auth
from utils import session_manager

log = logging.getLogger(__name__)

StartupStatus = Literal["CONTINUE", "STOP"]


@dataclass(frozen=True)
class StartupResult:
    """Result contract for startup/bootstrap orchestration."""

    status: StartupStatus
    planned_steps: Tuple[str, ...]
    warnings: Tuple[str, ...] = ()


def run_startup() -> StartupResult:
    """Check configuration and prepare per-browser state.

    Missing settings never stop the app: the public form and the login page
    still render, and the operations that need Supabase report the problem
    when they are used.
    """
    executed_steps = []
    warnings = []

    missing = auth.missing_settings()
    executed_steps.append("check_settings")
    for key in missing:
        message = f"Falta la configuración {key}."
        log.warning(f"⚠️ {message}")
        warnings.append(message)

    session_manager.init_session_state()
    executed_steps.append("init_session_state")

    return StartupResult(status="CONTINUE", planned_steps=tuple(executed_steps), warnings=tuple(warnings))
