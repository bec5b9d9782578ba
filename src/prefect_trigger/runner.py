"""Flow run triggering and waiting.

FlowRunTrigger creates a flow run from a deployment and, when asked,
polls the run until it reaches a terminal state:

    COMPLETED, CANCELLING      -> return normally
    FAILED, CRASHED, CANCELLED -> raise RunFailedError
    anything else              -> sleep poll_interval, poll again

Waiting is unbounded. Requests are never retried: a transport failure
while creating or polling a run aborts the invocation.
"""

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

import httpx
from pydantic import ValidationError

from prefect_trigger.connection import build_request, create_http_client, flow_run_url
from prefect_trigger.exceptions import (
    ApiConnectionError,
    ProtocolError,
    RunFailedError,
    WaitCancelledError,
)
from prefect_trigger.models import (
    ConnectionConfig,
    FlowRunPayload,
    RunHandle,
    RunRequest,
    RunResult,
    is_failure,
)
from prefect_trigger.response import JsonValue, expect_mapping, parse_response

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 5.0


def _payload(data: JsonValue, what: str) -> FlowRunPayload:
    try:
        return FlowRunPayload.model_validate(expect_mapping(data, what))
    except ValidationError as e:
        raise ProtocolError(f"Unexpected {what} shape: {e}") from e


class FlowRunTrigger:
    """Creates a flow run and optionally waits for it to finish.

    The httpx.Client is owned by the caller. Tests substitute a client
    built on httpx.MockTransport and a recording sleep function.
    """

    def __init__(
        self,
        config: ConnectionConfig,
        client: httpx.Client,
        *,
        sleep: Callable[[float], None] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self._config = config
        self._client = client
        self._sleep = sleep or time.sleep
        self._cancel_event = cancel_event

    @property
    def config(self) -> ConnectionConfig:
        return self._config

    def _send(
        self,
        method: str,
        path: str,
        action: str,
        body: dict[str, Any] | None = None,
    ) -> JsonValue:
        request = build_request(self._config, path)
        logger.debug("Sending %s request to: %s", method, request.url)
        try:
            response = self._client.request(
                method,
                request.url,
                headers=request.headers,
                json=body,
            )
        except httpx.HTTPError as e:
            raise ApiConnectionError(request.url, e, action=action) from e
        return parse_response(response)

    def trigger(self, run_request: RunRequest) -> RunHandle:
        """Create a flow run from a deployment.

        Returns:
            Handle carrying the run ID and its initial state

        Raises:
            ApiConnectionError: If the API cannot be reached
            ApiError: If the API rejects the request
            ProtocolError: If the response carries no run ID
        """
        logger.info("Creating flow run for deployment: %s", run_request.deployment_id)
        data = self._send(
            "POST",
            f"/deployments/{run_request.deployment_id}/create_flow_run",
            action="connect to",
            body=run_request.request_body(),
        )
        payload = _payload(data, "create_flow_run response")
        if not payload.id:
            raise ProtocolError("Prefect API response for create_flow_run has no flow run 'id'")

        handle = payload.to_handle(payload.id)
        logger.info("Created flow run with ID: %s", handle.id)
        return handle

    def get_status(self, run_id: str) -> RunHandle:
        """Fetch the current state of a flow run (one GET)."""
        data = self._send(
            "GET",
            f"/flow_runs/{run_id}",
            action="poll flow run status from",
        )
        return _payload(data, "flow run response").to_handle(run_id)

    def wait_for_terminal(
        self,
        handle: RunHandle,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> RunHandle:
        """Poll the run until its state is terminal.

        Args:
            handle: Handle returned by trigger()
            poll_interval: Seconds to sleep between polls

        Returns:
            Handle with the terminal state (COMPLETED or CANCELLING)

        Raises:
            RunFailedError: If the run ends FAILED, CRASHED or CANCELLED
            WaitCancelledError: If the cancel event is set
            ApiConnectionError: If a poll cannot reach the API
        """
        while True:
            if self._cancel_event is not None and self._cancel_event.is_set():
                raise WaitCancelledError(handle.id)

            handle = self.get_status(handle.id)
            logger.debug("Flow run %s state: %s", handle.id, handle.state_type)

            if handle.is_terminal:
                if is_failure(handle.state_type):
                    raise RunFailedError(
                        handle.id,
                        handle.state_type,
                        handle.state_name,
                        handle.state_message,
                    )
                return handle

            self._sleep(poll_interval)

    def run(
        self,
        run_request: RunRequest,
        wait: bool = True,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        on_created: Callable[[RunHandle], None] | None = None,
    ) -> RunResult:
        """Trigger a run and, if wait is True, block until it is terminal.

        on_created is called with the new handle before any polling.
        """
        handle = self.trigger(run_request)
        if on_created is not None:
            on_created(handle)

        if wait:
            logger.info("Waiting for flow run to complete (polling every %ss)", poll_interval)
            handle = self.wait_for_terminal(handle, poll_interval)
            logger.info("Flow run completed with state: %s", handle.state_type)

        return RunResult(
            run_id=handle.id,
            state_type=handle.state_type,
            view_url=flow_run_url(self._config, handle.id),
        )


def run_flow(
    config: ConnectionConfig,
    run_request: RunRequest,
    *,
    wait: bool = True,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    client: httpx.Client | None = None,
    sleep: Callable[[float], None] | None = None,
    cancel_event: threading.Event | None = None,
    on_created: Callable[[RunHandle], None] | None = None,
) -> RunResult:
    """Trigger a deployment run in one call.

    A client is created and closed here when none is given.

    Example:
        config = ConnectionConfig(base_url="http://127.0.0.1:4200/api")
        result = run_flow(config, RunRequest(deployment_id="..."), wait=False)
        print(result.view_url)
    """
    if client is not None:
        return FlowRunTrigger(config, client, sleep=sleep, cancel_event=cancel_event).run(
            run_request, wait=wait, poll_interval=poll_interval, on_created=on_created
        )

    with create_http_client() as owned_client:
        return FlowRunTrigger(
            config, owned_client, sleep=sleep, cancel_event=cancel_event
        ).run(run_request, wait=wait, poll_interval=poll_interval, on_created=on_created)
