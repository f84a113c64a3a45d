"""Diff/plan engine: compare desired declarations with state."""

from .models import Plan, PlannedChange, ResourceAction
from .engine import plan
from .plan_file import save_plan, load_plan, ensure_current

__all__ = [
    "Plan",
    "PlannedChange",
    "ResourceAction",
    "plan",
    "save_plan",
    "load_plan",
    "ensure_current",
]
