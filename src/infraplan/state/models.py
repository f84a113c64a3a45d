"""Pydantic models for persisted state."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

STATE_FORMAT_VERSION = 1


class ResourceState(BaseModel):
    """Last-applied attributes of one resource."""
    type: str = Field(..., description="Resource type")
    attributes: Dict[str, Any] = Field(default_factory=dict, description="Declared and computed attributes")
    dependencies: List[str] = Field(default_factory=list, description="Addresses this resource depended on when applied")


class StateSnapshot(BaseModel):
    """Mapping from resource address to last-applied attributes."""
    version: int = Field(default=STATE_FORMAT_VERSION, description="State file format version")
    serial: int = Field(default=0, ge=0, description="Incremented on every write")
    resources: Dict[str, ResourceState] = Field(default_factory=dict)

    def get(self, address: str) -> Optional[ResourceState]:
        return self.resources.get(address)

    def addresses(self) -> List[str]:
        return sorted(self.resources)

    def __contains__(self, address: str) -> bool:
        return address in self.resources

    def __len__(self) -> int:
        return len(self.resources)
