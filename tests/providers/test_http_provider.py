"""Tests for the HTTP provider (mocked)."""

import threading
from unittest.mock import Mock
import pytest
import requests
from infraplan.config import ProviderSettings
from infraplan.providers import HttpProvider, LocalProvider, get_provider
from infraplan.utils.errors import (
    ConfigError, ExecutionCancelledError, ProviderError, ProviderThrottlingError, ProviderTimeoutError,
)


def response(status_code, body=None, text=""):
    mock = Mock()
    mock.status_code = status_code
    if body is None:
        mock.json.side_effect = ValueError("no json")
    else:
        mock.json.return_value = body
    mock.text = text
    return mock


@pytest.fixture
def session():
    return Mock()


@pytest.fixture
def provider(session):
    return HttpProvider(base_url="http://provider.test/", default_timeout=5, session=session)


class TestHttpProvider:
    """Test REST calls and error classification."""

    def test_create(self, provider, session):
        session.request.return_value = response(201, {"attributes": {"id": "vpc-9", "cidr_block": "10.0.0.0/16"}})
        result = provider.create_resource("aws_vpc", {"cidr_block": "10.0.0.0/16"}, timeout=2)
        assert result["id"] == "vpc-9"
        session.request.assert_called_once_with(
            "POST", "http://provider.test/resources/aws_vpc",
            json={"attributes": {"cidr_block": "10.0.0.0/16"}}, timeout=2,
        )

    def test_update_uses_prior_id(self, provider, session):
        session.request.return_value = response(200, {"attributes": {"id": "vpc-9"}})
        provider.update_resource("aws_vpc", {"id": "vpc-9"}, {"tags": {}})
        args, kwargs = session.request.call_args
        assert args == ("PUT", "http://provider.test/resources/aws_vpc/vpc-9")
        assert kwargs["timeout"] == 5

    def test_delete_missing_is_success(self, provider, session):
        session.request.return_value = response(404, {"message": "not found"})
        provider.delete_resource("aws_vpc", {"id": "vpc-9"})

    def test_throttling_is_transient(self, provider, session):
        session.request.return_value = response(429, {"message": "rate exceeded"})
        with pytest.raises(ProviderThrottlingError) as exc_info:
            provider.create_resource("aws_vpc", {})
        assert exc_info.value.transient
        assert "rate exceeded" in str(exc_info.value)

    @pytest.mark.parametrize("status", [500, 502, 503, 504])
    def test_server_errors_are_transient(self, provider, session, status):
        session.request.return_value = response(status, text="upstream unavailable")
        with pytest.raises(ProviderError) as exc_info:
            provider.create_resource("aws_vpc", {})
        assert exc_info.value.transient
        assert exc_info.value.status_code == status

    @pytest.mark.parametrize("status", [400, 403, 409])
    def test_client_errors_are_permanent(self, provider, session, status):
        session.request.return_value = response(status, {"error": "invalid cidr"})
        with pytest.raises(ProviderError) as exc_info:
            provider.create_resource("aws_vpc", {})
        assert not exc_info.value.transient
        assert "invalid cidr" in str(exc_info.value)

    def test_timeout_is_transient(self, provider, session):
        session.request.side_effect = requests.exceptions.Timeout("read timed out")
        with pytest.raises(ProviderTimeoutError):
            provider.create_resource("aws_vpc", {})

    def test_connection_error_is_transient(self, provider, session):
        session.request.side_effect = requests.exceptions.ConnectionError("refused")
        with pytest.raises(ProviderError) as exc_info:
            provider.create_resource("aws_vpc", {})
        assert exc_info.value.transient

    def test_response_without_attributes(self, provider, session):
        session.request.return_value = response(200, {"ok": True})
        with pytest.raises(ProviderError, match="no 'attributes'"):
            provider.create_resource("aws_vpc", {})

    def test_cancelled_call_is_not_sent(self, provider, session):
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(ExecutionCancelledError):
            provider.create_resource("aws_vpc", {}, cancel_event=cancel)
        session.request.assert_not_called()

    def test_transport_error_after_cancel_is_not_retryable(self, provider, session):
        cancel = threading.Event()

        def interrupted(*args, **kwargs):
            cancel.set()
            raise requests.exceptions.ConnectionError("connection aborted")

        session.request.side_effect = interrupted
        with pytest.raises(ExecutionCancelledError):
            provider.delete_resource("aws_vpc", {"id": "vpc-9"}, cancel_event=cancel)

    def test_completed_response_is_kept_after_cancel(self, provider, session):
        cancel = threading.Event()

        def respond(*args, **kwargs):
            cancel.set()
            return response(201, {"attributes": {"id": "vpc-9"}})

        session.request.side_effect = respond
        assert provider.create_resource("aws_vpc", {}, cancel_event=cancel) == {"id": "vpc-9"}

    def test_is_available(self, provider, session):
        session.request.return_value = response(200, {})
        assert provider.is_available()
        session.request.side_effect = requests.exceptions.ConnectionError("refused")
        assert not provider.is_available()


class TestProviderRegistry:
    """Test provider selection from settings."""

    def test_local(self, registry):
        assert isinstance(get_provider(ProviderSettings(), registry), LocalProvider)

    def test_http(self):
        provider = get_provider(ProviderSettings(name="http", base_url="http://provider.test", timeout=9))
        assert isinstance(provider, HttpProvider)
        assert provider.base_url == "http://provider.test"
        assert provider.default_timeout == 9

    def test_http_requires_base_url(self):
        with pytest.raises(ConfigError, match="base_url"):
            get_provider(ProviderSettings(name="http"))

    def test_unknown(self):
        with pytest.raises(ConfigError, match="Unknown provider 'terraform'"):
            get_provider(ProviderSettings(name="terraform"))
