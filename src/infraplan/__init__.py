"""infraplan - Declarative resource graph planner and executor."""

import threading
from typing import Dict, Any, Optional
from .ingest.declaration_loader import load_declarations
from .ingest.expansion import expand_declarations
from .graph.reference_resolver import ResourceGraph, resolve
from .planner import Plan, plan as compute_plan
from .execution import ExecutionReport, RetryPolicy, Scheduler
from .providers import Provider
from .registry import SchemaRegistry, load_registry
from .state import StateStore
from .config import Settings
from .utils.logging import setup_logging, get_logger
from .utils.errors import InfraPlanError

__version__ = "0.1.0"

__all__ = ["load_graph", "create_plan", "apply_plan"]

setup_logging()
logger = get_logger("infraplan")


def load_graph(declarations_path: str, registry: SchemaRegistry,
               variables: Optional[Dict[str, Any]] = None) -> ResourceGraph:
    """
    Load, expand and resolve a declarations file.

    Raises:
        PlanningError: On load, variable, type, reference or cycle errors
    """
    logger.info(f"Loading declarations: {declarations_path}")
    document = load_declarations(declarations_path)
    expanded = expand_declarations(document, variables)
    return resolve(expanded.nodes, registry, expanded.outputs)


def create_plan(declarations_path: str, state_store: StateStore,
                registry: Optional[SchemaRegistry] = None,
                variables: Optional[Dict[str, Any]] = None,
                destroy: bool = False) -> Plan:
    """
    Plan the changes that reconcile a declarations file with state.

    Args:
        declarations_path: Path to a YAML or JSON declarations file
        state_store: Store holding last-applied state
        registry: Schema registry (default: built-in schemas)
        variables: Variable overrides
        destroy: Plan deletion of everything in state

    Returns:
        Plan in execution order

    Raises:
        PlanningError: Before any mutation, on any declaration problem
    """
    registry = registry or load_registry()
    graph = load_graph(declarations_path, registry, variables)
    return compute_plan(graph, state_store.load(), registry, destroy=destroy)


def apply_plan(plan: Plan, provider: Provider, state_store: StateStore,
               settings: Optional[Settings] = None,
               cancel_event: Optional[threading.Event] = None) -> ExecutionReport:
    """
    Execute a plan with the configured parallelism, retries and timeout.

    Returns:
        ExecutionReport; its `success` is False if any change did not succeed
    """
    settings = settings or Settings()
    scheduler = Scheduler(
        parallelism=settings.parallelism,
        retry_policy=RetryPolicy.from_settings(settings.retry),
        timeout=settings.provider_timeout,
    )
    try:
        return scheduler.apply(plan, provider, state_store, cancel_event)
    except InfraPlanError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error during apply: {e}", exc_info=True)
        raise InfraPlanError(f"Apply failed: {e}") from e
