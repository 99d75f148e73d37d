# harness.py
# Per-request pipeline.
#
# The ChatHarness owns control flow for one chat request:
#   user message → router → planner → plan normalization
#   → sequential execution → post-process hook → result formatting
#
# Every anticipated failure becomes an assistant reply here; nothing else
# in the package catches PlanRunnerError. Unexpected exceptions propagate
# to the caller.

from plan_runner import display
from plan_runner.assistants import ASSISTANTS, DEFAULT_ASSISTANT, Assistant
from plan_runner.errors import (
    EmptyPlanError,
    PlanParseError,
    PlanRunnerError,
    ToolNotFoundError,
    UpstreamModelError,
)
from plan_runner.executor import execute_plan
from plan_runner.formatter import format_result
from plan_runner.llm import ModelClient, get_model_client
from plan_runner.models import ChatMessage
from plan_runner.planner import request_plan
from plan_runner.router import select_assistant


class ChatHarness:
    """
    Routes, plans and executes one chat request at a time.

    Example:
        harness = ChatHarness()
        reply = await harness.respond([ChatMessage(role="user", content="What day is tomorrow?")])
    """

    def __init__(
        self,
        client: ModelClient | None = None,
        assistants: dict[str, Assistant] | None = None,
        default_assistant: str = DEFAULT_ASSISTANT,
    ) -> None:
        self._client = client
        self._assistants = assistants if assistants is not None else ASSISTANTS
        self._default = default_assistant

    @property
    def client(self) -> ModelClient:
        if self._client is None:
            self._client = get_model_client()
        return self._client

    async def route(self, user_message: str) -> Assistant:
        return await select_assistant(self.client, user_message, self._assistants, self._default)

    async def run(self, messages: list[ChatMessage], assistant: Assistant) -> str:
        """Plan and execute for an already selected assistant. Raises PlanRunnerError."""
        wire_messages = [message.model_dump() for message in messages]
        user_message = messages[-1].content if messages else ""

        plan = await request_plan(self.client, wire_messages, assistant)
        if not plan:
            raise EmptyPlanError()
        display.plan_parsed(plan)

        report = await execute_plan(plan, assistant, user_query=user_message)
        return format_result(report.output)

    async def respond(self, messages: list[ChatMessage]) -> str:
        """
        Full pipeline entry point.

        Returns a string for every anticipated outcome: the formatted
        result, or a fixed message explaining why there is none.
        """
        user_message = messages[-1].content if messages else ""
        display.request_received(user_message)

        try:
            assistant = await self.route(user_message)
            result = await self.run(messages, assistant)
        except UpstreamModelError as exc:
            display.upstream_error(exc.detail)
            return str(exc)
        except PlanParseError as exc:
            display.plan_rejected(exc.detail)
            return str(exc)
        except ToolNotFoundError as exc:
            return str(exc)
        except PlanRunnerError as exc:
            display.halt(str(exc))
            return str(exc)

        display.final_result(result)
        return result
