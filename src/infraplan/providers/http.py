"""HTTP provider adapter for a REST resource API."""

import os
import threading
from typing import Any, Dict, Optional
import requests
from .base import Provider
from ..utils.errors import ExecutionCancelledError, ProviderError, ProviderThrottlingError, ProviderTimeoutError
from ..utils.logging import get_logger

logger = get_logger("providers.http")

TRANSIENT_STATUS_CODES = (500, 502, 503, 504)


class HttpProvider(Provider):
    """
    Provider that manages resources through a REST endpoint.

    Endpoints:
        POST   {base_url}/resources/{type}        -> {"attributes": {...}}
        PUT    {base_url}/resources/{type}/{id}   -> {"attributes": {...}}
        DELETE {base_url}/resources/{type}/{id}
        GET    {base_url}/health

    429 responses, 5xx responses, connection failures and timeouts are
    transient. Other error statuses are permanent.

    A set cancel_event stops a call before its request is sent, and turns a
    transport failure into ExecutionCancelledError instead of a retryable
    error. A response that did arrive is always returned so its effect is
    recorded.
    """

    name = "http"

    def __init__(self, base_url: Optional[str] = None, default_timeout: float = 60.0,
                 session: Optional[requests.Session] = None):
        """
        Initialize HTTP provider.

        Args:
            base_url: API base URL (default: $INFRAPLAN_PROVIDER_URL or http://localhost:8080)
            default_timeout: Timeout used when a call does not pass one
            session: Optional requests session (connection pooling, auth, tests)
        """
        self.base_url = (base_url or os.getenv("INFRAPLAN_PROVIDER_URL", "http://localhost:8080")).rstrip("/")
        self.default_timeout = default_timeout
        self.session = session or requests.Session()

    def create_resource(self, resource_type: str, attributes: Dict[str, Any],
                        timeout: Optional[float] = None,
                        cancel_event: Optional[threading.Event] = None) -> Dict[str, Any]:
        response = self._request("POST", f"/resources/{resource_type}", timeout, {"attributes": attributes},
                                 cancel_event=cancel_event)
        return self._attributes(response, resource_type)

    def update_resource(self, resource_type: str, prior: Dict[str, Any], attributes: Dict[str, Any],
                        timeout: Optional[float] = None,
                        cancel_event: Optional[threading.Event] = None) -> Dict[str, Any]:
        resource_id = self._require_id(resource_type, prior)
        response = self._request("PUT", f"/resources/{resource_type}/{resource_id}", timeout,
                                 {"attributes": attributes}, cancel_event=cancel_event)
        return self._attributes(response, resource_type)

    def delete_resource(self, resource_type: str, prior: Dict[str, Any],
                        timeout: Optional[float] = None,
                        cancel_event: Optional[threading.Event] = None) -> None:
        resource_id = self._require_id(resource_type, prior)
        self._request("DELETE", f"/resources/{resource_type}/{resource_id}", timeout, None,
                      allow_missing=True, cancel_event=cancel_event)

    def is_available(self) -> bool:
        try:
            response = self.session.request("GET", f"{self.base_url}/health", timeout=2)
            return response.status_code == 200
        except requests.exceptions.RequestException:
            return False

    def _request(self, method: str, path: str, timeout: Optional[float], payload: Optional[Dict[str, Any]],
                 allow_missing: bool = False,
                 cancel_event: Optional[threading.Event] = None) -> Optional[requests.Response]:
        url = f"{self.base_url}{path}"
        if cancel_event is not None and cancel_event.is_set():
            raise ExecutionCancelledError(f"{method} {url} cancelled before it was sent")
        try:
            response = self.session.request(
                method,
                url,
                json=payload,
                timeout=timeout if timeout is not None else self.default_timeout
            )
        except requests.exceptions.RequestException as e:
            if cancel_event is not None and cancel_event.is_set():
                raise ExecutionCancelledError(f"{method} {url} cancelled: {e}")
            raise _transport_error(method, url, e)

        status = response.status_code
        if allow_missing and status == 404:
            logger.debug(f"{method} {url}: resource already gone")
            return None
        if status == 429:
            raise ProviderThrottlingError(f"{method} {url} throttled: {_error_detail(response)}")
        if status in TRANSIENT_STATUS_CODES:
            raise ProviderError(f"{method} {url} returned {status}: {_error_detail(response)}",
                                transient=True, status_code=status)
        if status >= 400:
            raise ProviderError(f"{method} {url} returned {status}: {_error_detail(response)}",
                                transient=False, status_code=status)
        return response

    def _attributes(self, response: requests.Response, resource_type: str) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError as e:
            raise ProviderError(f"Invalid JSON response for {resource_type}: {e}")
        attributes = body.get("attributes") if isinstance(body, dict) else None
        if not isinstance(attributes, dict):
            raise ProviderError(f"Response for {resource_type} has no 'attributes' mapping")
        return attributes

    def _require_id(self, resource_type: str, prior: Dict[str, Any]) -> str:
        resource_id = prior.get("id")
        if not resource_id:
            raise ProviderError(f"Cannot address {resource_type}: prior state has no id")
        return resource_id


def _transport_error(method: str, url: str, error: requests.exceptions.RequestException) -> ProviderError:
    if isinstance(error, requests.exceptions.Timeout):
        return ProviderTimeoutError(f"{method} {url} timed out: {error}")
    if isinstance(error, requests.exceptions.ConnectionError):
        return ProviderError(f"{method} {url} failed to connect: {error}", transient=True)
    return ProviderError(f"{method} {url} failed: {error}")


def _error_detail(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return (response.text or "").strip()[:200]
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body)
    return str(body)
