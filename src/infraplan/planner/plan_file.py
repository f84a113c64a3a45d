"""Save and load plans as JSON artifacts."""

import json
from pathlib import Path
from pydantic import ValidationError
from .models import Plan, PLAN_FORMAT_VERSION
from ..state.models import StateSnapshot
from ..utils.errors import PlanFileError, StalePlanError
from ..utils.logging import get_logger

logger = get_logger("planner.plan_file")


def save_plan(plan: Plan, output_path: Path) -> None:
    """
    Write a plan to disk.

    Raises:
        PlanFileError: If the file cannot be written
    """
    output_path = Path(output_path)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(plan.to_json())
    except OSError as e:
        raise PlanFileError(f"Failed to write plan file {output_path}: {e}")
    logger.info(f"Saved plan with {len(plan.changes)} changes to {output_path}")


def load_plan(plan_path: Path) -> Plan:
    """
    Read a plan written by save_plan.

    Raises:
        PlanFileError: If the file is missing or is not a valid plan
    """
    plan_path = Path(plan_path)
    if not plan_path.exists():
        raise PlanFileError(f"Plan file not found: {plan_path}")

    try:
        with open(plan_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise PlanFileError(f"Invalid JSON in plan file: {e}")
    except OSError as e:
        raise PlanFileError(f"Error reading plan file: {e}")

    if not isinstance(data, dict) or data.get("version") != PLAN_FORMAT_VERSION:
        raise PlanFileError(
            f"Unsupported plan format in {plan_path} "
            f"(expected version {PLAN_FORMAT_VERSION})"
        )

    try:
        plan = Plan(**data)
    except ValidationError as e:
        raise PlanFileError(f"Invalid plan file {plan_path}: {e}")

    logger.info(f"Loaded plan with {len(plan.changes)} changes from {plan_path}")
    return plan


def ensure_current(plan: Plan, state: StateSnapshot) -> None:
    """
    Refuse to apply a saved plan computed against a different state.

    Raises:
        StalePlanError: If the state serial moved since the plan was made
    """
    if plan.state_serial != state.serial:
        raise StalePlanError(
            f"Saved plan is stale: it was computed against state serial {plan.state_serial}, "
            f"but the current serial is {state.serial}. Run plan again."
        )
