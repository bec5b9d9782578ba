"""prefect-trigger exception hierarchy.

Every failure of a trigger invocation surfaces as one of these exceptions.
Nothing is retried or recovered locally, so the message of each error must
explain itself (target URL, HTTP status, or the run's reported state).

Usage:
    from prefect_trigger.exceptions import ApiError, RunFailedError

    try:
        result = run_flow(config, RunRequest(deployment_id="..."))
    except RunFailedError as e:
        print(f"Run {e.run_id} failed: {e.state_type}")
    except ApiError as e:
        print(f"Prefect rejected the request ({e.status_code}): {e.detail}")
    except PrefectTriggerError as e:
        print(f"prefect-trigger error: {e}")
"""


class PrefectTriggerError(Exception):
    """Base exception for all prefect-trigger errors.

    Callers can catch every failure of an invocation with a single
    except clause.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# Configuration Errors


class ConfigurationError(PrefectTriggerError):
    """Connection or task configuration is missing or invalid.

    Raised when the API URL is empty, when cloud mode lacks an account or
    workspace identifier, or when a task file cannot be loaded.
    """

    pass


# Transport and API Errors


class ApiConnectionError(PrefectTriggerError):
    """The Prefect API could not be reached.

    Wraps the transport exception raised while sending a request.
    """

    def __init__(self, url: str, cause: BaseException, action: str = "connect to") -> None:
        self.url = url
        self.cause = cause
        super().__init__(
            f"Failed to {action} Prefect API at {url}. "
            f"Please verify the Prefect server is running and accessible. Error: {cause}"
        )


class ApiError(PrefectTriggerError):
    """The Prefect API answered with an HTTP error status (>= 400)."""

    def __init__(self, status_code: int, detail: str) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Prefect API error (HTTP {status_code}): {detail}")


class DecodeError(PrefectTriggerError):
    """A successful response body is not valid JSON."""

    def __init__(self, body: str, reason: str) -> None:
        self.body = body
        self.reason = reason
        message = f"Invalid JSON in Prefect API response: {reason}"
        if body:
            message += f" (body: {body[:200]})"
        super().__init__(message)


class ProtocolError(PrefectTriggerError):
    """A well-formed response lacks a field or has an unexpected shape."""

    pass


# Run Errors


class RunError(PrefectTriggerError):
    """Base class for errors about a triggered flow run."""

    def __init__(self, run_id: str, message: str) -> None:
        self.run_id = run_id
        super().__init__(message)


class RunFailedError(RunError):
    """The flow run reached FAILED, CRASHED or CANCELLED."""

    def __init__(
        self,
        run_id: str,
        state_type: str,
        state_name: str | None = None,
        state_message: str | None = None,
    ) -> None:
        self.state_type = state_type
        self.state_name = state_name
        self.state_message = state_message
        message = f"Flow run ended in state: {state_type}"
        if state_name is not None:
            message += f" ({state_name})"
        if state_message is not None:
            message += f" - {state_message}"
        super().__init__(run_id, message)


class WaitCancelledError(RunError):
    """Waiting was abandoned through the cancel event.

    The remote run itself is left untouched.
    """

    def __init__(self, run_id: str) -> None:
        super().__init__(run_id, f"Stopped waiting for flow run {run_id}: cancelled by caller")
