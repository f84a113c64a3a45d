"""In-memory provider that simulates a cloud API."""

import copy
import hashlib
import json
import threading
from typing import Any, Dict, Optional
from .base import Provider
from ..registry.registry import SchemaRegistry
from ..utils.errors import ExecutionCancelledError, ProviderError, ProviderTimeoutError
from ..utils.logging import get_logger

logger = get_logger("providers.local")

ACCOUNT_ID = "000000000000"
REGION = "local"


class LocalProvider(Provider):
    """
    Simulated provider for dry runs, demos and tests.

    Resources live in memory only. Computed outputs are fabricated from the
    resource schema: `id` and `arn` look like AWS identifiers, other outputs
    are derived from the id.
    """

    name = "local"

    def __init__(self, registry: Optional[SchemaRegistry] = None, latency: float = 0.0):
        """
        Initialize the local provider.

        Args:
            registry: Schema registry used to fabricate computed outputs
            latency: Simulated seconds per call; a call whose latency exceeds
                its timeout raises ProviderTimeoutError
                and a call cancelled while waiting has no effect
        """
        self.registry = registry
        self.latency = latency
        self.resources: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()
        self._counter = 0

    def create_resource(self, resource_type: str, attributes: Dict[str, Any],
                        timeout: Optional[float] = None,
                        cancel_event: Optional[threading.Event] = None) -> Dict[str, Any]:
        self._simulate_call("create", resource_type, timeout, cancel_event)
        with self._lock:
            self._counter += 1
            resource_id = _make_id(resource_type, attributes, self._counter)
            result = copy.deepcopy(attributes)
            result.update(self._computed(resource_type, resource_id))
            self.resources[resource_id] = {"type": resource_type, "attributes": result}
        logger.debug(f"Created {resource_type} {resource_id}")
        return copy.deepcopy(result)

    def update_resource(self, resource_type: str, prior: Dict[str, Any], attributes: Dict[str, Any],
                        timeout: Optional[float] = None,
                        cancel_event: Optional[threading.Event] = None) -> Dict[str, Any]:
        self._simulate_call("update", resource_type, timeout, cancel_event)
        resource_id = prior.get("id")
        if not resource_id:
            raise ProviderError(f"Cannot update {resource_type}: prior state has no id")
        with self._lock:
            result = copy.deepcopy(attributes)
            result.update(self._computed(resource_type, resource_id))
            self.resources[resource_id] = {"type": resource_type, "attributes": result}
        logger.debug(f"Updated {resource_type} {resource_id}")
        return copy.deepcopy(result)

    def delete_resource(self, resource_type: str, prior: Dict[str, Any],
                        timeout: Optional[float] = None,
                        cancel_event: Optional[threading.Event] = None) -> None:
        self._simulate_call("delete", resource_type, timeout, cancel_event)
        resource_id = prior.get("id")
        with self._lock:
            self.resources.pop(resource_id, None)
        logger.debug(f"Deleted {resource_type} {resource_id}")

    def _simulate_call(self, operation: str, resource_type: str, timeout: Optional[float],
                       cancel_event: Optional[threading.Event]) -> None:
        waiter = cancel_event or threading.Event()
        if waiter.is_set():
            raise ExecutionCancelledError(f"{operation} {resource_type} cancelled before it started")
        if self.latency <= 0:
            return
        timed_out = timeout is not None and self.latency > timeout
        if waiter.wait(timeout if timed_out else self.latency):
            raise ExecutionCancelledError(f"{operation} {resource_type} cancelled while in progress")
        if timed_out:
            raise ProviderTimeoutError(f"{operation} {resource_type} timed out after {timeout}s")

    def _computed(self, resource_type: str, resource_id: str) -> Dict[str, Any]:
        outputs = ["id", "arn"]
        if self.registry is not None and self.registry.has_type(resource_type):
            outputs = self.registry.get_schema(resource_type).computed_outputs()

        service = resource_type.split("_")[1] if resource_type.count("_") >= 1 else resource_type
        values = {}
        for output in outputs:
            if output == "id":
                values[output] = resource_id
            elif output == "arn":
                values[output] = f"arn:aws:{service}:{REGION}:{ACCOUNT_ID}:{_short_type(resource_type)}/{resource_id}"
            else:
                values[output] = f"{resource_id}-{output.replace('_', '-')}"
        return values


def _short_type(resource_type: str) -> str:
    name = resource_type[len("aws_"):] if resource_type.startswith("aws_") else resource_type
    return name.replace("_", "-")


def _make_id(resource_type: str, attributes: Dict[str, Any], counter: int) -> str:
    digest = hashlib.sha1(
        f"{resource_type}:{counter}:{json.dumps(attributes, sort_keys=True, default=str)}".encode("utf-8")
    ).hexdigest()
    return f"{_short_type(resource_type)}-{digest[:12]}"
