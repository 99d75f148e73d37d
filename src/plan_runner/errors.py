# errors.py
# Exception taxonomy for the plan runner.
#
# Each exception carries the user-facing message as its str(). The harness
# is the only place these are caught and turned into chat replies.

# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

NO_PLAN_MESSAGE = "Sorry, I couldn't create a plan for that request."
PLAN_PARSE_MESSAGE = "Failed to parse plan JSON from model."
NO_TOOL_MESSAGE = "Sorry, no suitable tool is available for that request."
UPSTREAM_MESSAGE = "Sorry, I couldn't reach the planning model. Please try again later."


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class PlanRunnerError(Exception):
    """Base class for every failure the harness reports as a chat message."""


class PlanParseError(PlanRunnerError):
    """Raised when model output cannot be reduced to a list of steps."""

    def __init__(self, detail: str = "") -> None:
        super().__init__(PLAN_PARSE_MESSAGE)
        self.detail = detail


class EmptyPlanError(PlanRunnerError):
    """Raised when the model produced a plan with no steps."""

    def __init__(self) -> None:
        super().__init__(NO_PLAN_MESSAGE)


class ToolNotAvailableError(PlanRunnerError):
    """Raised when the model signals that no registered tool fits the request."""

    def __init__(self) -> None:
        super().__init__(NO_TOOL_MESSAGE)


class ToolNotFoundError(PlanRunnerError):
    """Raised when a step names a tool absent from the assistant registry."""

    def __init__(self, tool: str) -> None:
        super().__init__(f'Tool "{tool}" not found for this assistant.')
        self.tool = tool


class MissingArgumentError(PlanRunnerError):
    """Raised when a required argument is absent after resolution and sanitization."""

    def __init__(self, tool: str, argument: str) -> None:
        super().__init__(f'Tool "{tool}" is missing required argument "{argument}".')
        self.tool = tool
        self.argument = argument


class UpstreamModelError(PlanRunnerError):
    """Raised when a chat completion call fails or returns no content."""

    def __init__(self, detail: str = "") -> None:
        super().__init__(UPSTREAM_MESSAGE)
        self.detail = detail
