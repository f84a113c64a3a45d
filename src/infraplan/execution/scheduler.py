"""Execute a plan against a provider, respecting dependency order."""

import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, List, Optional, TypeVar
from .models import ExecutionReport, NodeResult, NodeStatus
from .retry import RetryPolicy, compute_backoff_delay
from ..ingest.values import evaluate, parse_value
from ..planner.models import Plan, PlannedChange, ResourceAction
from ..providers.base import Provider
from ..state.store import StateStore
from ..utils.errors import ExecutionCancelledError, InfraPlanError, ProviderError, StateError
from ..utils.logging import get_logger

logger = get_logger("execution.scheduler")

T = TypeVar("T")


class Scheduler:
    """
    Concurrent plan executor.

    A change is dispatched once every change it `requires` has succeeded.
    When a change fails, everything that transitively requires it is
    skipped while independent branches keep running. State is committed
    per node right after that node succeeds, so an interrupted or partially
    failed apply leaves state describing exactly what was done.
    """

    def __init__(self, parallelism: int = 10, retry_policy: Optional[RetryPolicy] = None,
                 timeout: Optional[float] = None):
        """
        Args:
            parallelism: Maximum number of concurrent provider calls
            retry_policy: Backoff for transient provider errors
            timeout: Per provider call timeout in seconds
        """
        if parallelism < 1:
            raise ValueError("parallelism must be >= 1")
        self.parallelism = parallelism
        self.retry_policy = retry_policy or RetryPolicy()
        self.timeout = timeout

    def apply(self, plan: Plan, provider: Provider, state_store: StateStore,
              cancel_event: Optional[threading.Event] = None) -> ExecutionReport:
        """
        Execute every change in the plan.

        Args:
            plan: Plan to execute
            provider: Provider that performs the changes
            state_store: Store that receives a commit per successful change
            cancel_event: Set to stop dispatching new changes

        Returns:
            ExecutionReport with one result per change, in plan order
        """
        run = _Run(plan, cancel_event or threading.Event())
        logger.info(f"Applying {len(plan.changes)} changes with parallelism {self.parallelism}")

        with ThreadPoolExecutor(max_workers=self.parallelism, thread_name_prefix="infraplan") as pool:
            running: Dict[Future, str] = {}
            try:
                while run.ready or running:
                    while run.ready and len(running) < self.parallelism and not run.cancel_event.is_set():
                        address = run.ready.pop(0)
                        change = run.changes[address]
                        result = run.results[address]
                        if change.action == ResourceAction.NO_OP:
                            result.status = NodeStatus.SUCCEEDED
                            run.release(address)
                            continue
                        result.status = NodeStatus.IN_PROGRESS
                        logger.debug(f"Dispatching {change.action} {address}")
                        future = pool.submit(self._execute, change, provider, state_store,
                                             run.cancel_event, result)
                        running[future] = address

                    if not running:
                        break
                    done, _ = wait(list(running), return_when=FIRST_COMPLETED)
                    for future in done:
                        self._settle(run, running.pop(future), future)
            except KeyboardInterrupt:
                logger.warning("Interrupted: no new changes will start; waiting for in-flight changes")
                run.cancel_event.set()
                done, _ = wait(list(running))
                for future in done:
                    self._settle(run, running.pop(future), future)

        for result in run.results.values():
            if result.status == NodeStatus.PENDING:
                result.status = NodeStatus.CANCELLED

        report = ExecutionReport(
            results=[run.results[c.address] for c in plan.changes],
            cancelled=run.cancel_event.is_set(),
        )
        counts = report.counts()
        logger.info(
            f"Apply finished: {counts['succeeded']} succeeded, {counts['failed']} failed, "
            f"{counts['skipped']} skipped, {counts['cancelled']} cancelled"
        )
        return report

    def _settle(self, run: "_Run", address: str, future: Future) -> None:
        result = run.results[address]
        error = future.exception()
        if error is None:
            result.status = NodeStatus.SUCCEEDED
            logger.info(f"{address}: {run.changes[address].action} complete")
            run.release(address)
        elif isinstance(error, ExecutionCancelledError):
            result.status = NodeStatus.CANCELLED
            result.error = str(error)
        else:
            result.status = NodeStatus.FAILED
            result.error = str(error) if isinstance(error, InfraPlanError) else f"{type(error).__name__}: {error}"
            logger.error(f"{address}: {run.changes[address].action} failed: {result.error}")
            run.skip_dependents(address)

    def _execute(self, change: PlannedChange, provider: Provider, state_store: StateStore,
                 cancel_event: threading.Event, result: NodeResult) -> None:
        """Run one change in a worker thread; raises on failure."""
        started = time.monotonic()
        try:
            self._perform(change, provider, state_store, cancel_event, result)
        finally:
            result.duration = round(time.monotonic() - started, 3)

    def _perform(self, change: PlannedChange, provider: Provider, state_store: StateStore,
                 cancel_event: threading.Event, result: NodeResult) -> None:
        action = ResourceAction(change.action)
        address = change.address
        prior = change.before or {}

        def call(operation: Callable[[], T]) -> T:
            return self._call_with_retry(address, operation, cancel_event, result)

        def delete_prior() -> None:
            call(lambda: provider.delete_resource(
                change.type, prior, timeout=self.timeout, cancel_event=cancel_event))

        def create(desired: Dict[str, Any]) -> None:
            created = call(lambda: provider.create_resource(
                change.type, desired, timeout=self.timeout, cancel_event=cancel_event))
            state_store.commit(address, change.type, {**desired, **created}, change.dependencies)

        if action == ResourceAction.DELETE:
            delete_prior()
            state_store.remove(address)
            return

        desired = resolve_attributes(change, state_store)

        if action == ResourceAction.CREATE:
            create(desired)
        elif action == ResourceAction.UPDATE:
            updated = call(lambda: provider.update_resource(
                change.type, prior, desired, timeout=self.timeout, cancel_event=cancel_event))
            state_store.commit(address, change.type, {**desired, **updated}, change.dependencies)
        elif action == ResourceAction.REPLACE:
            if change.create_before_destroy:
                create(desired)
                delete_prior()
            else:
                delete_prior()
                state_store.remove(address)
                create(desired)

    def _call_with_retry(self, address: str, operation: Callable[[], T],
                         cancel_event: threading.Event, result: NodeResult) -> T:
        retries = 0
        while True:
            result.attempts += 1
            try:
                return operation()
            except ProviderError as e:
                if not e.transient or retries + 1 >= self.retry_policy.max_attempts:
                    raise
                retries += 1
                delay = compute_backoff_delay(retries, self.retry_policy)
                logger.warning(
                    f"{address}: transient provider error ({e}); retry {retries} in {delay:.2f}s"
                )
                if cancel_event.wait(delay):
                    raise ExecutionCancelledError(f"{address}: cancelled while waiting to retry")


def resolve_attributes(change: PlannedChange, state_store: StateStore) -> Dict[str, Any]:
    """
    Resolve the references in a change's desired attributes against
    committed state.

    A producer field that was left unset resolves to None, as it did
    during planning.

    Raises:
        StateError: If a referenced producer is not in state
    """
    snapshot = state_store.load()

    def lookup(address: str, field: str) -> Any:
        resource = snapshot.get(address)
        if resource is None:
            raise StateError(f"{change.address}: {address} is not in state")
        return resource.attributes.get(field)

    return {
        name: evaluate(parse_value(raw), lookup)
        for name, raw in sorted((change.after or {}).items())
        if raw is not None
    }


class _Run:
    """Bookkeeping for one apply: readiness, results and skip propagation."""

    def __init__(self, plan: Plan, cancel_event: threading.Event):
        self.cancel_event = cancel_event
        self.changes: Dict[str, PlannedChange] = {c.address: c for c in plan.changes}
        self.position = {c.address: i for i, c in enumerate(plan.changes)}
        self.results: Dict[str, NodeResult] = {
            c.address: NodeResult(address=c.address, type=c.type, action=c.action)
            for c in plan.changes
        }
        self.waiting_on = {c.address: set(r for r in c.requires if r in self.changes) for c in plan.changes}
        self.dependents: Dict[str, List[str]] = {c.address: [] for c in plan.changes}
        for change in plan.changes:
            for required in self.waiting_on[change.address]:
                self.dependents[required].append(change.address)
        self.ready: List[str] = [c.address for c in plan.changes if not self.waiting_on[c.address]]

    def release(self, address: str) -> None:
        for dependent in self.dependents[address]:
            self.waiting_on[dependent].discard(address)
            if not self.waiting_on[dependent] and self.results[dependent].status == NodeStatus.PENDING:
                self.ready.append(dependent)
        self.ready.sort(key=self.position.get)

    def skip_dependents(self, address: str) -> None:
        stack = list(self.dependents[address])
        while stack:
            dependent = stack.pop()
            result = self.results[dependent]
            if result.status != NodeStatus.PENDING:
                continue
            result.status = NodeStatus.SKIPPED
            result.error = f"skipped: dependency {address} failed"
            logger.warning(f"{dependent}: skipped because {address} failed")
            stack.extend(self.dependents[dependent])
