"""Pydantic models for plans."""

import json
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

PLAN_FORMAT_VERSION = "1.0"


class ResourceAction(str, Enum):
    """Planned action for one resource."""
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    REPLACE = "REPLACE"
    NO_OP = "NO_OP"


class PlannedChange(BaseModel):
    """One (resource, action) pair in a plan."""
    address: str = Field(..., description="Resource address")
    type: str = Field(..., description="Resource type")
    action: ResourceAction = Field(..., description="Planned action")
    before: Optional[Dict[str, Any]] = Field(None, description="Last-applied attributes, if any")
    after: Optional[Dict[str, Any]] = Field(None, description="Desired attributes; references kept as ${...}")
    changed_fields: List[str] = Field(default_factory=list, description="Fields that differ from state")
    replace_fields: List[str] = Field(default_factory=list, description="Changed fields that force replacement")
    create_before_destroy: bool = Field(False, description="Replacement order")
    requires: List[str] = Field(default_factory=list, description="Changes that must complete first")
    dependencies: List[str] = Field(default_factory=list, description="Producers this resource depends on")

    class Config:
        use_enum_values = True


class Plan(BaseModel):
    """Ordered list of changes reconciling declarations with state."""
    version: str = Field(default=PLAN_FORMAT_VERSION, description="Plan format version")
    destroy: bool = Field(default=False, description="Whether this is a destroy plan")
    state_serial: int = Field(default=0, ge=0, description="Serial of the state the plan was computed against")
    changes: List[PlannedChange] = Field(default_factory=list, description="Changes in execution order")
    outputs: Dict[str, Any] = Field(default_factory=dict, description="Output expressions")

    class Config:
        use_enum_values = True

    def get(self, address: str) -> Optional[PlannedChange]:
        for change in self.changes:
            if change.address == address:
                return change
        return None

    def addresses(self, action: Optional[ResourceAction] = None) -> List[str]:
        """Addresses in plan order, optionally filtered by action."""
        return [c.address for c in self.changes if action is None or c.action == action]

    def summary(self) -> Dict[str, int]:
        counts = {action.value: 0 for action in ResourceAction}
        for change in self.changes:
            counts[ResourceAction(change.action).value] += 1
        return counts

    @property
    def has_changes(self) -> bool:
        return any(c.action != ResourceAction.NO_OP for c in self.changes)

    def to_json(self) -> str:
        """Deterministic JSON rendering; identical plans give identical bytes."""
        return json.dumps(self.model_dump(mode="json"), indent=2, sort_keys=True)
