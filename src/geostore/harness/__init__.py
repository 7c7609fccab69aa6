from .context import HarnessContext, build_context, get_context, reset_context
from .teardown import DEFAULT_PLAN, PURGE_DEPENDENCIES, PurgePlan, TeardownReport, purge_entity, remove_all

__all__ = [
    "HarnessContext",
    "build_context",
    "get_context",
    "reset_context",
    "DEFAULT_PLAN",
    "PURGE_DEPENDENCIES",
    "PurgePlan",
    "TeardownReport",
    "purge_entity",
    "remove_all",
]
