"""Abstract base class for resource providers."""

import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class Provider(ABC):
    """
    Abstract interface to the API that actually manages resources.

    Providers receive fully resolved attributes (no references) and return
    the attributes the resource ended up with, including computed outputs
    such as id and arn.

    Failures are raised as ProviderError; providers classify each failure
    as transient (throttling, timeouts, server errors) or permanent. A call
    interrupted by its cancel_event raises ExecutionCancelledError.
    """

    name = "provider"

    @abstractmethod
    def create_resource(
        self,
        resource_type: str,
        attributes: Dict[str, Any],
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> Dict[str, Any]:
        """
        Create a resource.

        Args:
            resource_type: Resource type, e.g. aws_vpc
            attributes: Resolved desired attributes
            timeout: Per-call timeout in seconds
            cancel_event: Set when the apply is cancelled; a call that notices
                it before taking effect raises ExecutionCancelledError

        Returns:
            Provider attributes, including computed outputs
        """
        pass

    @abstractmethod
    def update_resource(
        self,
        resource_type: str,
        prior: Dict[str, Any],
        attributes: Dict[str, Any],
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> Dict[str, Any]:
        """
        Update a resource in place.

        Args:
            resource_type: Resource type
            prior: Last-applied attributes (carries the id)
            attributes: Resolved desired attributes
            timeout: Per-call timeout in seconds
            cancel_event: Set when the apply is cancelled; a call that notices
                it before taking effect raises ExecutionCancelledError

        Returns:
            Provider attributes after the update
        """
        pass

    @abstractmethod
    def delete_resource(
        self,
        resource_type: str,
        prior: Dict[str, Any],
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> None:
        """
        Delete a resource.

        Args:
            resource_type: Resource type
            prior: Last-applied attributes (carries the id)
            timeout: Per-call timeout in seconds
            cancel_event: Set when the apply is cancelled; a call that notices
                it before taking effect raises ExecutionCancelledError
        """
        pass

    def is_available(self) -> bool:
        """Check if the provider can be reached."""
        return True
