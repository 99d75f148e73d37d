# executor.py
# Sequential plan execution.
#
# Control flow per step:
#   strip prefix → registry lookup → resolve references → sanitize
#   → required-argument check → invoke handler → record result
#
# Steps never run concurrently: a later step's arguments may be built from
# an earlier step's result. Handler failures are data, not exceptions; the
# only ways out of the loop early are the exceptions in errors.py.

import inspect
import re
from typing import TYPE_CHECKING, Any

from plan_runner import display
from plan_runner.errors import MissingArgumentError, ToolNotAvailableError, ToolNotFoundError
from plan_runner.models import ExecutionRecord, ExecutionReport, Step, ToolEntry
from plan_runner.sanitizer import sanitize_args
from plan_runner.templates import resolve_templates

if TYPE_CHECKING:
    from plan_runner.assistants import Assistant

TOOL_NOT_AVAILABLE = "TOOL_NOT_AVAILABLE"

# Namespace prefixes models sometimes prepend, e.g. "functions.getCurrentDate".
_NAMESPACE_PREFIX = re.compile(r"^(?:[A-Za-z_][\w-]*\.)+")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def strip_namespace(tool: str) -> str:
    return _NAMESPACE_PREFIX.sub("", tool.strip())


def _check_required(tool: str, entry: ToolEntry, args: dict[str, Any]) -> None:
    for key in entry.definition.parameters.required:
        if args.get(key) is None:
            raise MissingArgumentError(tool, key)


async def _invoke(entry: ToolEntry, args: dict[str, Any]) -> Any:
    result = entry.handler(args)
    if inspect.isawaitable(result):
        result = await result
    return result


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


async def execute_step(
    index: int,
    step: Step,
    entry: ToolEntry,
    history: list[Any],
) -> ExecutionRecord:
    """
    Run one step against the results of the steps before it.

    Only `history` entries from earlier steps are visible, so a reference
    to this step or a later one resolves to None.
    """
    tool = strip_namespace(step.tool)
    resolved = resolve_templates(step.args, history) if step.args else {}
    if not isinstance(resolved, dict):
        resolved = {}

    args = sanitize_args(entry.definition, resolved)
    dropped = [key for key in resolved if key not in args]
    if dropped:
        display.args_dropped(tool, dropped)

    _check_required(tool, entry, args)

    display.tool_invoked(tool, args)
    result = await _invoke(entry, args)
    display.tool_result(result)

    return ExecutionRecord(index=index, tool=tool, args=args, result=result)


async def execute_plan(
    plan: list[Step],
    assistant: "Assistant",
    user_query: str = "",
) -> ExecutionReport:
    """
    Execute `plan` with the tools registered on `assistant`.

    Raises ToolNotAvailableError before anything runs if any step carries
    the no-tool sentinel, ToolNotFoundError at the first step naming an
    unregistered tool, and MissingArgumentError at the first step whose
    required arguments did not resolve. Results recorded up to that point
    are discarded with the exception.
    """
    if any(strip_namespace(step.tool) == TOOL_NOT_AVAILABLE for step in plan):
        raise ToolNotAvailableError()

    report = ExecutionReport()
    history: list[Any] = []
    total = len(plan)

    display.execution_start(total)

    entry: ToolEntry | None = None
    for index, step in enumerate(plan):
        name = strip_namespace(step.tool)
        display.step_start(index, total, name)

        entry = assistant.tools.get(name)
        if entry is None:
            display.tool_not_found(step.tool)
            raise ToolNotFoundError(step.tool)

        record = await execute_step(index, step, entry, history)
        history.append(record.result)
        report.records.append(record)

    display.execution_summary(report.records)

    if not report.records:
        return report

    last = report.records[-1]
    report.output = last.result
    if entry is not None and not entry.return_raw and assistant.post_process is not None:
        processed = await assistant.post_process(last.tool, last.result, user_query)
        if processed is not None:
            report.output = processed

    return report
