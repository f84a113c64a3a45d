"""Pydantic models for apply results."""

from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class NodeStatus(str, Enum):
    """Execution status of one planned change."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"
    CANCELLED = "cancelled"


class NodeResult(BaseModel):
    """Outcome of one planned change."""
    address: str = Field(..., description="Resource address")
    type: str = Field(..., description="Resource type")
    action: str = Field(..., description="Planned action")
    status: NodeStatus = Field(default=NodeStatus.PENDING, description="Execution status")
    attempts: int = Field(default=0, ge=0, description="Provider call attempts")
    error: Optional[str] = Field(default=None, description="Provider error message or skip reason")
    duration: float = Field(default=0.0, ge=0, description="Seconds spent executing")

    class Config:
        use_enum_values = True


class ExecutionReport(BaseModel):
    """Per-node results of an apply, in plan order."""
    results: List[NodeResult] = Field(default_factory=list)
    cancelled: bool = Field(default=False, description="Whether apply was cancelled")

    def get(self, address: str) -> Optional[NodeResult]:
        for result in self.results:
            if result.address == address:
                return result
        return None

    def addresses(self, status: NodeStatus) -> List[str]:
        return [r.address for r in self.results if r.status == status]

    def counts(self) -> Dict[str, int]:
        counts = {status.value: 0 for status in NodeStatus}
        for result in self.results:
            counts[NodeStatus(result.status).value] += 1
        return counts

    @property
    def success(self) -> bool:
        """True when every change succeeded."""
        return all(r.status == NodeStatus.SUCCEEDED for r in self.results)
