"""Application layer contracts for orchestrating high-level flows."""

from .auth_flow import AuthFlowResult, AuthFlowStatus, ensure_authenticated_session
from .bootstrap import StartupResult, StartupStatus, run_startup
from .directory_manager import DirectoryCache, DirectoryManager, SagaResult, StepResult
from .domain_models import Area, Profile, Suggestion, SuggestionStatus
from .intake_gate import PublicIntakeGate
from .session_models import AdminUser, AuthSession, Capability, Role, can_manage_areas, can_manage_users
from .suggestion_lifecycle import SuggestionLifecycleManager

__all__ = [
    "AdminUser",
    "Area",
    "AuthFlowResult",
    "AuthFlowStatus",
    "AuthSession",
    "Capability",
    "DirectoryCache",
    "DirectoryManager",
    "Profile",
    "PublicIntakeGate",
    "Role",
    "SagaResult",
    "StartupResult",
    "StartupStatus",
    "StepResult",
    "Suggestion",
    "SuggestionLifecycleManager",
    "SuggestionStatus",
    "can_manage_areas",
    "can_manage_users",
    "ensure_authenticated_session",
    "run_startup",
]
