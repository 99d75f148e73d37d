import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from plan_runner.assistants import ASSISTANTS, DETAILS_FOLLOW_UP, Assistant, meeting_assistant
from plan_runner.errors import (
    NO_PLAN_MESSAGE,
    NO_TOOL_MESSAGE,
    PLAN_PARSE_MESSAGE,
    UPSTREAM_MESSAGE,
    MissingArgumentError,
    ToolNotAvailableError,
    ToolNotFoundError,
    UpstreamModelError,
)
from plan_runner.executor import execute_plan, strip_namespace
from plan_runner.harness import ChatHarness
from plan_runner.models import ChatMessage, Step, ToolDefinition, ToolEntry, ToolParameters
from plan_runner.planner import planner_prompt, request_plan
from plan_runner.router import parse_decision, router_prompt, select_assistant

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _entry(name, handler, properties=(), required=(), return_raw=False):
    definition = ToolDefinition(
        name=name,
        description=f"{name} test tool",
        parameters=ToolParameters(
            properties={key: {"type": "string"} for key in properties},
            required=list(required),
        ),
    )
    return ToolEntry(definition=definition, handler=handler, return_raw=return_raw)


@pytest.fixture
def calls():
    return []


@pytest.fixture
def spy_assistant(calls):
    async def list_items(args):
        calls.append(("listItems", args))
        return {"items": [{"itemId": "i-1", "name": "first"}, {"itemId": "i-2", "name": "second"}]}

    async def item_detail(args):
        calls.append(("itemDetail", args))
        return f"detail for {args['itemId']}"

    def echo(args):
        calls.append(("echo", args))
        return args.get("message")

    async def wrap(args):
        calls.append(("wrap", args))
        return {"value": args.get("message")}

    async def failing(args):
        calls.append(("failing", args))
        return {"error": "upstream unavailable"}

    return Assistant(
        name="spyAssistant",
        description="test assistant",
        system_prompt="You are a test assistant.",
        tools={
            "listItems": _entry("listItems", list_items),
            "itemDetail": _entry("itemDetail", item_detail, ["itemId"], required=["itemId"]),
            "echo": _entry("echo", echo, ["message"], return_raw=True),
            "failing": _entry("failing", failing),
            "wrap": _entry("wrap", wrap, ["message"]),
        },
    )


def _client(*replies):
    client = MagicMock()
    client.complete = AsyncMock(side_effect=list(replies))
    return client


def _run(coro):
    return asyncio.run(coro)


# ---------------------------------------------------------------------------
# Step execution
# ---------------------------------------------------------------------------


def test_execute_plan_runs_tools_in_order_exactly_once(spy_assistant, calls):
    plan = [
        Step(tool="echo", args={"message": "one"}),
        Step(tool="listItems"),
        Step(tool="echo", args={"message": "three"}),
    ]
    report = _run(execute_plan(plan, spy_assistant))

    assert [name for name, _ in calls] == ["echo", "listItems", "echo"]
    assert report.history[0] == "one"
    assert report.history[2] == "three"
    assert report.output == "three"


def test_execute_plan_threads_previous_results(spy_assistant, calls):
    plan = [
        Step(tool="listItems", args={}),
        Step(tool="itemDetail", args={"itemId": "{{prev:0.items[1].itemId}}"}),
    ]
    report = _run(execute_plan(plan, spy_assistant))

    assert calls[1] == ("itemDetail", {"itemId": "i-2"})
    assert report.output == "detail for i-2"
    assert [record.index for record in report.records] == [0, 1]


@pytest.mark.parametrize("reference, expected", [(0, "one"), (1, "two"), (2, None), (7, None)])
def test_reference_only_sees_earlier_steps(spy_assistant, calls, reference, expected):
    plan = [
        Step(tool="wrap", args={"message": "one"}),
        Step(tool="wrap", args={"message": "two"}),
        Step(tool="echo", args={"message": "{{prev:%d.value}}" % reference}),
    ]
    report = _run(execute_plan(plan, spy_assistant))

    assert calls[2] == ("echo", {"message": expected})
    assert report.output == expected


def test_execute_plan_strips_namespace_prefix(spy_assistant, calls):
    report = _run(execute_plan([Step(tool="functions.echo", args={"message": "hi"})], spy_assistant))
    assert calls == [("echo", {"message": "hi"})]
    assert report.records[0].tool == "echo"


def test_execute_plan_drops_undeclared_args(spy_assistant, calls):
    _run(execute_plan([Step(tool="echo", args={"message": "hi", "invented": 1})], spy_assistant))
    assert calls == [("echo", {"message": "hi"})]


def test_sentinel_aborts_before_any_step(spy_assistant, calls):
    with pytest.raises(ToolNotAvailableError) as exc_info:
        _run(execute_plan([Step(tool="TOOL_NOT_AVAILABLE")], spy_assistant))
    assert str(exc_info.value) == NO_TOOL_MESSAGE
    assert calls == []


def test_sentinel_later_in_plan_still_runs_nothing(spy_assistant, calls):
    plan = [Step(tool="echo", args={"message": "hi"}), Step(tool="functions.TOOL_NOT_AVAILABLE")]
    with pytest.raises(ToolNotAvailableError):
        _run(execute_plan(plan, spy_assistant))
    assert calls == []


def test_sentinel_takes_precedence_over_unknown_tool(spy_assistant, calls):
    plan = [Step(tool="ghostTool"), Step(tool="TOOL_NOT_AVAILABLE")]
    with pytest.raises(ToolNotAvailableError):
        _run(execute_plan(plan, spy_assistant))
    assert calls == []


def test_unknown_tool_halts_at_that_step(spy_assistant, calls):
    plan = [
        Step(tool="echo", args={"message": "before"}),
        Step(tool="deleteEverything", args={}),
        Step(tool="echo", args={"message": "after"}),
    ]
    with pytest.raises(ToolNotFoundError, match='Tool "deleteEverything" not found'):
        _run(execute_plan(plan, spy_assistant))
    assert calls == [("echo", {"message": "before"})]


def test_unresolved_required_argument_halts_before_invocation(spy_assistant, calls):
    plan = [
        Step(tool="listItems"),
        Step(tool="itemDetail", args={"itemId": "{{prev:0.items[9].itemId}}"}),
        Step(tool="echo", args={"message": "after"}),
    ]
    with pytest.raises(MissingArgumentError) as exc_info:
        _run(execute_plan(plan, spy_assistant))
    assert exc_info.value.tool == "itemDetail"
    assert exc_info.value.argument == "itemId"
    assert [name for name, _ in calls] == ["listItems"]


def test_error_shaped_result_is_recorded_and_flows_on(spy_assistant, calls):
    plan = [
        Step(tool="failing"),
        Step(tool="echo", args={"message": "{{prev:0.error}}"}),
    ]
    report = _run(execute_plan(plan, spy_assistant))
    assert report.history[0] == {"error": "upstream unavailable"}
    assert report.output == "upstream unavailable"


def test_empty_plan_produces_empty_report(spy_assistant):
    report = _run(execute_plan([], spy_assistant))
    assert report.records == []
    assert report.output is None


def test_post_process_hook_shapes_final_output(spy_assistant):
    hook = AsyncMock(return_value="shaped")
    spy_assistant.post_process = hook

    report = _run(execute_plan([Step(tool="listItems")], spy_assistant, user_query="list"))

    hook.assert_awaited_once()
    assert hook.await_args.args[0] == "listItems"
    assert hook.await_args.args[2] == "list"
    assert report.output == "shaped"
    assert report.history[0]["items"][0]["itemId"] == "i-1"


def test_post_process_skipped_for_return_raw_tools(spy_assistant):
    hook = AsyncMock(return_value="shaped")
    spy_assistant.post_process = hook

    report = _run(execute_plan([Step(tool="echo", args={"message": "raw"})], spy_assistant))

    hook.assert_not_awaited()
    assert report.output == "raw"


def test_post_process_returning_none_keeps_result(spy_assistant):
    spy_assistant.post_process = AsyncMock(return_value=None)
    report = _run(execute_plan([Step(tool="failing")], spy_assistant))
    assert report.output == {"error": "upstream unavailable"}


def test_meeting_post_process_adds_follow_up():
    hook = meeting_assistant.post_process
    assert _run(hook("fetchMeetingDetails", "Topic A", "")).endswith(DETAILS_FOLLOW_UP)
    assert _run(hook("fetchMeetings", {"meetings": []}, "")) == {"meetings": []}


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("getCurrentDate", "getCurrentDate"),
        ("functions.getCurrentDate", "getCurrentDate"),
        (" tools.v1.fetchMeetings ", "fetchMeetings"),
    ],
)
def test_strip_namespace(raw, expected):
    assert strip_namespace(raw) == expected


# ---------------------------------------------------------------------------
# Routing
# ---------------------------------------------------------------------------


def test_router_prompt_lists_every_assistant():
    prompt = router_prompt(ASSISTANTS)
    for name in ASSISTANTS:
        assert f"Assistant: {name}" in prompt


def test_parse_decision_accepts_known_assistant():
    decision = parse_decision('{"assistantName": "meetingAssistant", "reason": "meetings"}', ASSISTANTS)
    assert decision.assistant_name == "meetingAssistant"
    assert decision.reason == "meetings"


@pytest.mark.parametrize(
    "content",
    ["not json", '{"assistantName": "ghostAssistant"}', '{"reason": "none"}', "[1, 2]"],
)
def test_parse_decision_rejects_unusable_replies(content):
    assert parse_decision(content, ASSISTANTS) is None


def test_select_assistant_uses_model_choice():
    client = _client('{"assistantName": "meetingAssistant", "reason": "mentions meetings"}')
    assistant = _run(select_assistant(client, "show meetings"))
    assert assistant.name == "meetingAssistant"


def test_select_assistant_falls_back_on_upstream_error():
    client = _client(UpstreamModelError("503"))
    assistant = _run(select_assistant(client, "what day is it"))
    assert assistant.name == "dateAssistant"


def test_select_assistant_falls_back_on_garbage():
    client = _client("I think the meeting one?")
    assert _run(select_assistant(client, "hi")).name == "dateAssistant"


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------


def test_planner_prompt_describes_tools_and_grammar(spy_assistant):
    prompt = planner_prompt(spy_assistant)
    assert "Tool name: itemDetail" in prompt
    assert '"required": [\n    "itemId"\n  ]' in prompt
    assert "{{prev:<stepIndex>.<fieldPath>}}" in prompt
    assert '[{"tool":"TOOL_NOT_AVAILABLE"}]' in prompt
    assert "You are a test assistant." in prompt


def test_request_plan_prepends_system_prompt(spy_assistant):
    client = _client('[{"tool": "listItems", "args": {}}]')
    messages = [{"role": "user", "content": "list things"}]

    plan = _run(request_plan(client, messages, spy_assistant))

    assert plan == [Step(tool="listItems", args={})]
    sent = client.complete.await_args.args[0]
    assert sent[0]["role"] == "system"
    assert sent[1:] == messages


# ---------------------------------------------------------------------------
# Harness
# ---------------------------------------------------------------------------


def _harness(spy_assistant, *replies):
    client = _client(*replies)
    harness = ChatHarness(
        client=client,
        assistants={spy_assistant.name: spy_assistant},
        default_assistant=spy_assistant.name,
    )
    return harness, client


def _ask(harness, text="please help"):
    return _run(harness.respond([ChatMessage(role="user", content=text)]))


ROUTE = json.dumps({"assistantName": "spyAssistant", "reason": "test"})


def test_respond_formats_last_result(spy_assistant):
    plan = '[{"tool": "listItems"}, {"tool": "itemDetail", "args": {"itemId": "{{prev:0.items[0].itemId}}"}}]'
    harness, _ = _harness(spy_assistant, ROUTE, plan)
    assert _ask(harness) == "detail for i-1"


def test_respond_with_fenced_plan(spy_assistant):
    harness, _ = _harness(spy_assistant, ROUTE, 'Sure!\n```json\n[{"tool":"echo","args":{"message":"hey"}}]\n```')
    assert _ask(harness) == "hey"


def test_respond_reports_parse_failure(spy_assistant, calls):
    harness, _ = _harness(spy_assistant, ROUTE, "I would rather chat about the weather.")
    assert _ask(harness) == PLAN_PARSE_MESSAGE
    assert calls == []


def test_respond_reports_empty_plan(spy_assistant):
    harness, _ = _harness(spy_assistant, ROUTE, "[]")
    assert _ask(harness) == NO_PLAN_MESSAGE


def test_respond_reports_no_tool_sentinel(spy_assistant, calls):
    harness, _ = _harness(spy_assistant, ROUTE, '[{"tool":"TOOL_NOT_AVAILABLE"}]')
    assert _ask(harness) == NO_TOOL_MESSAGE
    assert calls == []


def test_respond_names_unknown_tool(spy_assistant, calls):
    harness, _ = _harness(spy_assistant, ROUTE, '[{"tool":"functions.ghost"},{"tool":"echo","args":{"message":"x"}}]')
    assert _ask(harness) == 'Tool "functions.ghost" not found for this assistant.'
    assert calls == []


def test_respond_reports_missing_argument(spy_assistant):
    harness, _ = _harness(spy_assistant, ROUTE, '[{"tool":"itemDetail","args":{}}]')
    assert _ask(harness) == 'Tool "itemDetail" is missing required argument "itemId".'


def test_respond_reports_upstream_failure(spy_assistant):
    harness, _ = _harness(spy_assistant, ROUTE, UpstreamModelError("timeout"))
    assert _ask(harness) == UPSTREAM_MESSAGE


def test_respond_propagates_unexpected_errors(spy_assistant):
    async def broken(args):
        raise RuntimeError("handler bug")

    spy_assistant.tools["broken"] = _entry("broken", broken)
    harness, _ = _harness(spy_assistant, ROUTE, '[{"tool":"broken"}]')
    with pytest.raises(RuntimeError, match="handler bug"):
        _ask(harness)


def test_respond_falls_back_to_default_when_router_fails(spy_assistant):
    harness, _ = _harness(spy_assistant, UpstreamModelError("router down"), '[{"tool":"echo","args":{"message":"ok"}}]')
    assert _ask(harness) == "ok"
