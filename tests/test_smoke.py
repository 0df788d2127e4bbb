import sys
from unittest.mock import patch
import importlib


def test_imports():
    """Ensure core modules can be imported without crashing."""
    import use_cases.directory_manager  # noqa: F401
    import use_cases.suggestion_lifecycle  # noqa: F401
    import use_cases.intake_gate  # noqa: F401
    import use_cases.submission_flow  # noqa: F401
    import auth  # noqa: F401
    import ui  # noqa: F401
    import views.login_view  # noqa: F401
    import views.admin_view  # noqa: F401
    import views.dashboard_view  # noqa: F401
    import views.intake_view  # noqa: F401
    import views.export_view  # noqa: F401

    if "app" in sys.modules:
        del sys.modules["app"]

    with patch("utils.session_manager.current_route", return_value="/"), patch(
        "views.intake_view.render_intake"
    ), patch("auth.missing_settings", return_value=[]):
        importlib.import_module("app")
