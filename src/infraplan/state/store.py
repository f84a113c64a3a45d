"""State stores: persisted last-applied attributes keyed by address."""

import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional
from pydantic import ValidationError
from .models import ResourceState, StateSnapshot
from ..ingest.values import UNKNOWN, evaluate, parse_value
from ..utils.errors import StateError
from ..utils.logging import get_logger

logger = get_logger("state.store")


class StateStore(ABC):
    """
    Single-writer store of last-applied resource state.

    commit/remove are only called by the execution scheduler after a node
    succeeds. Writes are serialized by a lock so concurrent branches never
    interleave partial writes.
    """

    def __init__(self):
        self._lock = threading.Lock()

    @abstractmethod
    def _read(self) -> StateSnapshot:
        """Read the current snapshot from the backing medium."""
        pass

    @abstractmethod
    def _write(self, snapshot: StateSnapshot) -> None:
        """Persist a complete snapshot."""
        pass

    def load(self) -> StateSnapshot:
        """Return an independent copy of the current snapshot."""
        with self._lock:
            return self._read().model_copy(deep=True)

    def commit(self, address: str, resource_type: str, attributes: Dict[str, Any],
               dependencies: Optional[List[str]] = None) -> None:
        """Record the applied attributes of a resource."""
        with self._lock:
            snapshot = self._read().model_copy(deep=True)
            snapshot.resources[address] = ResourceState(
                type=resource_type,
                attributes=dict(attributes),
                dependencies=sorted(set(dependencies or [])),
            )
            snapshot.serial += 1
            self._write(snapshot)
        logger.debug(f"Committed state for {address} (serial {snapshot.serial})")

    def remove(self, address: str) -> None:
        """Forget a resource after it has been deleted."""
        with self._lock:
            snapshot = self._read().model_copy(deep=True)
            if snapshot.resources.pop(address, None) is None:
                logger.debug(f"Remove of {address} ignored: not in state")
                return
            snapshot.serial += 1
            self._write(snapshot)
        logger.debug(f"Removed {address} from state (serial {snapshot.serial})")

    def list_addresses(self) -> List[str]:
        return self.load().addresses()

    def get(self, address: str) -> Optional[ResourceState]:
        return self.load().get(address)

    def evaluate_outputs(self, outputs: Dict[str, Any]) -> Dict[str, Any]:
        """
        Evaluate output expressions against committed state.

        Args:
            outputs: Output name -> raw expression, e.g. "${aws_vpc.main.id}"

        Returns:
            Output name -> value; UNKNOWN where a referenced resource or
            attribute is not in state yet
        """
        snapshot = self.load()

        def lookup(address: str, field: str) -> Any:
            resource = snapshot.get(address)
            if resource is None or field not in resource.attributes:
                return UNKNOWN
            return resource.attributes[field]

        return {name: evaluate(parse_value(raw), lookup) for name, raw in sorted(outputs.items())}


class MemoryStateStore(StateStore):
    """In-memory store, used for tests and throwaway runs."""

    def __init__(self, snapshot: Optional[StateSnapshot] = None):
        super().__init__()
        self._snapshot = snapshot.model_copy(deep=True) if snapshot else StateSnapshot()

    def _read(self) -> StateSnapshot:
        return self._snapshot

    def _write(self, snapshot: StateSnapshot) -> None:
        self._snapshot = snapshot


class JsonStateStore(StateStore):
    """State persisted to a JSON file, written atomically."""

    def __init__(self, path: str):
        super().__init__()
        self.path = Path(path)
        self._cache: Optional[StateSnapshot] = None

    def _read(self) -> StateSnapshot:
        if self._cache is not None:
            return self._cache
        if not self.path.exists():
            logger.debug(f"No state file at {self.path}, starting empty")
            self._cache = StateSnapshot()
            return self._cache
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            self._cache = StateSnapshot(**data)
        except json.JSONDecodeError as e:
            raise StateError(f"Invalid JSON in state file {self.path}: {e}")
        except ValidationError as e:
            raise StateError(f"Invalid state file {self.path}: {e}")
        except OSError as e:
            raise StateError(f"Error reading state file {self.path}: {e}")
        return self._cache

    def _write(self, snapshot: StateSnapshot) -> None:
        try:
            payload = json.dumps(snapshot.model_dump(mode="json"), indent=2, sort_keys=True)
        except (TypeError, ValueError) as e:
            raise StateError(f"State for {self.path} is not JSON serializable: {e}")

        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".infraplan-state-", dir=str(self.path.parent))
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(payload)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StateError(f"Failed to write state file {self.path}: {e}")
        self._cache = snapshot
