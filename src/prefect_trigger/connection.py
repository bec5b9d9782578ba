"""Request construction for the Prefect API.

Turns a ConnectionConfig and a relative API path into an addressed,
authenticated request descriptor. Two addressing schemes are supported:

- Prefect Cloud: {base_url}/accounts/{account_id}/workspaces/{workspace_id}{path}
  with a Bearer token.
- Self-hosted: {base_url}{path} with an optional Basic token.

Nothing here performs I/O. The httpx.Client that actually sends requests
is created by the caller (see create_http_client) and passed around.
"""

import httpx
from pydantic import BaseModel, ConfigDict

from prefect_trigger.exceptions import ConfigurationError
from prefect_trigger.models import PREFECT_CLOUD_UI_URL, ConnectionConfig

BASIC_PREFIX = "Basic "


class ApiRequest(BaseModel):
    """Addressed request descriptor. The body is attached by the sender."""

    model_config = ConfigDict(frozen=True)

    url: str
    headers: dict[str, str]


def _require(value: str | None, name: str) -> str:
    if not value:
        raise ConfigurationError(f"{name} is required but was empty")
    return value


def _authorization(config: ConnectionConfig) -> str | None:
    """Authorization header value, or None for unauthenticated servers."""
    if not config.api_key:
        return None
    if config.is_cloud:
        return f"Bearer {config.api_key}"
    # Self-hosted servers take a base64 "user:pass" token; a full header
    # value is passed through unchanged.
    if config.api_key.startswith(BASIC_PREFIX):
        return config.api_key
    return f"{BASIC_PREFIX}{config.api_key}"


def api_root(config: ConnectionConfig) -> str:
    """Return the URL prefix all API paths are appended to."""
    base_url = _require(config.base_url, "apiUrl")
    if not config.is_cloud:
        return base_url
    account_id = _require(config.account_id, "accountId")
    workspace_id = _require(config.workspace_id, "workspaceId")
    return f"{base_url}/accounts/{account_id}/workspaces/{workspace_id}"


def build_request(config: ConnectionConfig, path: str) -> ApiRequest:
    """Build the request descriptor for an API path.

    Args:
        config: Connection settings
        path: API path starting with "/" (e.g. "/flow_runs/<id>")

    Returns:
        ApiRequest with the full URL and JSON/auth headers

    Raises:
        ConfigurationError: If the base URL or a cloud identifier is empty,
            or the path does not start with "/"
    """
    if not path.startswith("/"):
        raise ConfigurationError(f"API path must start with '/': {path!r}")

    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
    authorization = _authorization(config)
    if authorization is not None:
        headers["Authorization"] = authorization

    return ApiRequest(url=api_root(config) + path, headers=headers)


def flow_run_url(config: ConnectionConfig, run_id: str) -> str:
    """Return the Prefect UI URL of a flow run.

    Self-hosted UIs are served from the API host without the "/api" suffix.
    """
    if config.is_cloud:
        account_id = _require(config.account_id, "accountId")
        workspace_id = _require(config.workspace_id, "workspaceId")
        return (
            f"{PREFECT_CLOUD_UI_URL}/account/{account_id}"
            f"/workspace/{workspace_id}/flow-runs/flow-run/{run_id}"
        )
    ui_url = _require(config.base_url, "apiUrl").replace("/api", "", 1)
    return f"{ui_url}/flow-runs/flow-run/{run_id}"


def create_http_client(timeout: float = 30.0) -> httpx.Client:
    """Create the HTTP client used to talk to Prefect.

    The caller owns the client and must close it (or use it as a context
    manager). One client can serve many invocations.
    """
    return httpx.Client(timeout=timeout, follow_redirects=True)
