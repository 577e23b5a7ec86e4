# Shared utilities package
from .config import Settings, get_settings
from .errors import APIError
from .plan_limits import PlanLimits, resolve_plan_limits
from .response_utils import error_response, success_response

__all__ = [
    "Settings",
    "get_settings",
    "PlanLimits",
    "resolve_plan_limits",
    "error_response",
    "success_response",
    "APIError",
]
