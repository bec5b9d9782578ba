"""Tests for Prefect request construction."""

import httpx
import pytest
from pydantic import ValidationError

from prefect_trigger.connection import (
    ApiRequest,
    build_request,
    create_http_client,
    flow_run_url,
)
from prefect_trigger.exceptions import ConfigurationError
from prefect_trigger.models import ConnectionConfig


def cloud_config(**kwargs) -> ConnectionConfig:
    values = {"api_key": "pnu_secret", "account_id": "acc-1", "workspace_id": "ws-1"}
    values.update(kwargs)
    return ConnectionConfig(**values)


class TestConnectionConfig:
    """Tests for cloud vs self-hosted mode selection."""

    def test_defaults_to_cloud_api_url(self):
        config = ConnectionConfig()
        assert config.base_url == "https://api.prefect.cloud/api"
        assert config.is_cloud is False

    def test_cloud_requires_both_ids(self):
        assert cloud_config().is_cloud is True
        assert ConnectionConfig(account_id="acc-1").is_cloud is False
        assert ConnectionConfig(workspace_id="ws-1").is_cloud is False

    def test_is_frozen(self):
        config = ConnectionConfig()
        with pytest.raises(ValidationError):
            config.base_url = "http://other"


class TestBuildRequestUrl:
    """Tests for URL assembly."""

    def test_cloud_url_includes_account_and_workspace(self):
        request = build_request(cloud_config(), "/flow_runs/r1")
        assert request.url == (
            "https://api.prefect.cloud/api/accounts/acc-1/workspaces/ws-1/flow_runs/r1"
        )

    @pytest.mark.parametrize(
        "account_id, workspace_id",
        [(None, None), ("acc-1", None), (None, "ws-1")],
    )
    def test_self_hosted_url_is_plain_concatenation(self, account_id, workspace_id):
        config = ConnectionConfig(
            base_url="http://host:4200/api",
            account_id=account_id,
            workspace_id=workspace_id,
        )
        request = build_request(config, "/flow_runs/r1")
        assert request.url == "http://host:4200/api/flow_runs/r1"
        assert "/accounts/" not in request.url

    def test_no_slash_normalization(self):
        config = ConnectionConfig(base_url="http://host:4200/api/")
        request = build_request(config, "/flow_runs/r1")
        assert request.url == "http://host:4200/api//flow_runs/r1"

    def test_path_must_start_with_slash(self):
        with pytest.raises(ConfigurationError, match="must start with '/'"):
            build_request(ConnectionConfig(), "flow_runs/r1")

    def test_empty_base_url(self):
        with pytest.raises(ConfigurationError, match="apiUrl"):
            build_request(ConnectionConfig(base_url=""), "/flow_runs/r1")

    def test_empty_cloud_identifier(self):
        config = ConnectionConfig(account_id="", workspace_id="ws-1")
        # Both set (even if empty) selects cloud mode
        assert config.is_cloud is True
        with pytest.raises(ConfigurationError, match="accountId"):
            build_request(config, "/flow_runs/r1")


class TestBuildRequestHeaders:
    """Tests for content and authorization headers."""

    def test_json_headers_always_present(self):
        request = build_request(ConnectionConfig(base_url="http://host/api"), "/x")
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["Accept"] == "application/json"

    def test_cloud_uses_bearer(self):
        request = build_request(cloud_config(api_key="pnu_abc"), "/x")
        assert request.headers["Authorization"] == "Bearer pnu_abc"

    def test_self_hosted_uses_basic(self):
        config = ConnectionConfig(base_url="http://host/api", api_key="YWRtaW46cGFzcw==")
        request = build_request(config, "/x")
        assert request.headers["Authorization"] == "Basic YWRtaW46cGFzcw=="

    def test_self_hosted_full_basic_header_passes_through(self):
        config = ConnectionConfig(base_url="http://host/api", api_key="Basic YWRtaW46cGFzcw==")
        request = build_request(config, "/x")
        assert request.headers["Authorization"] == "Basic YWRtaW46cGFzcw=="

    def test_cloud_does_not_special_case_basic_prefix(self):
        request = build_request(cloud_config(api_key="Basic abc"), "/x")
        assert request.headers["Authorization"] == "Bearer Basic abc"

    @pytest.mark.parametrize("api_key", [None, ""])
    def test_no_authorization_without_key(self, api_key):
        config = ConnectionConfig(base_url="http://host/api", api_key=api_key)
        request = build_request(config, "/x")
        assert "Authorization" not in request.headers

    def test_returns_api_request(self):
        assert isinstance(build_request(ConnectionConfig(), "/x"), ApiRequest)


class TestFlowRunUrl:
    """Tests for Prefect UI URLs."""

    def test_cloud_url(self):
        config = ConnectionConfig(account_id="a", workspace_id="w")
        assert flow_run_url(config, "r1") == (
            "https://app.prefect.cloud/account/a/workspace/w/flow-runs/flow-run/r1"
        )

    def test_self_hosted_strips_api(self):
        config = ConnectionConfig(base_url="http://host:4200/api")
        assert flow_run_url(config, "r1") == "http://host:4200/flow-runs/flow-run/r1"

    def test_self_hosted_strips_first_api_only(self):
        config = ConnectionConfig(base_url="http://host/api/prefect/api")
        assert flow_run_url(config, "r1") == "http://host/prefect/api/flow-runs/flow-run/r1"

    def test_self_hosted_without_api_suffix(self):
        config = ConnectionConfig(base_url="http://host:4200")
        assert flow_run_url(config, "r1") == "http://host:4200/flow-runs/flow-run/r1"


def test_create_http_client():
    with create_http_client(timeout=12.0) as client:
        assert isinstance(client, httpx.Client)
        assert client.follow_redirects is True
        assert client.timeout.read == 12.0
