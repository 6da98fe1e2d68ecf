"""
Error taxonomy for the action pipeline.

Errors are recovered as close to their origin as possible. Only the messages
of ValidationError and HandlerExecutionError are meant to reach the end user,
and then only as ToolResult.error text.
"""


class ActionKernelError(Exception):
    """Base class for every pipeline error."""
    pass


class ProviderError(ActionKernelError):
    """Raised when a language-model call fails (network, auth, rate limit, bad reply)."""
    pass


class ValidationError(ActionKernelError):
    """Raised when tool parameters are missing or mistyped."""

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__(f"Invalid parameters: {', '.join(self.errors)}")


class ConnectorUnavailable(ActionKernelError):
    """Raised when an action needs a connector the actor has not enabled."""

    def __init__(self, connector_id: str):
        self.connector_id = connector_id
        super().__init__(f"Connector required: {connector_id}")


class UnknownCapability(ActionKernelError):
    """Raised when a tool id or action type is not registered."""
    pass


class HandlerExecutionError(ActionKernelError):
    """Wraps an exception raised inside a tool handler."""

    def __init__(self, tool_id: str, cause: BaseException):
        self.tool_id = tool_id
        self.cause = cause
        super().__init__(str(cause) or type(cause).__name__)


class RoutineError(ActionKernelError):
    """Raised when a routine definition is invalid."""
    pass
