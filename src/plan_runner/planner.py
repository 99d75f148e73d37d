# planner.py
# Builds the planning prompt for an assistant and turns the model's reply
# into a normalized plan.

import json

from plan_runner import display
from plan_runner.assistants import Assistant
from plan_runner.executor import TOOL_NOT_AVAILABLE
from plan_runner.llm import ModelClient
from plan_runner.models import Step
from plan_runner.plan import normalize_plan

PLANNER_SYSTEM_PROMPT = """\
You are a planning engine that creates a structured list of tool calls needed to fulfill the user's request.

Your job is to produce a JSON array of steps. Each step must be an object:
{{ "tool": "<toolName>", "args": {{ ... }} }}

Assistant instructions:
{assistant_prompt}

Available tools and their schemas:
{tool_schemas}

Your plan must be pure JSON: no prose, comments, or explanations.

### General Rules

1. Use tools only as needed to satisfy the user's intent.
   - If a single tool can fulfill the query, use just that one.
   - If one tool's output is required by another (e.g., ID lookup → detail fetch), chain them in order.

2. When referencing data from a previous tool's output, always use this template syntax:
   "{{{{prev:<stepIndex>.<fieldPath>}}}}"
   Example:
   {{"tool": "fetchMeetingDetails", "args": {{"meetingId": "{{{{prev:0.meetings[0].meetingId}}}}"}}}}
   - Never use tool names like {{{{fetchMeetings.meetings[0].id}}}}.
   - Always refer to previous results by their numeric index.

3. If you must call a lookup or helper tool (like fetching a list to find an ID),
   treat that tool as an internal step.
   The final tool in your plan should always produce the user's final visible answer.

4. Use only the parameters defined in each tool's schema.
   - Never invent or add keys not listed.
   - If you don't have a required parameter yet, first call a tool that can provide it.

5. If the user's request cannot be completed with available tools, return:
   [{{"tool":"{sentinel}"}}]

6. Always ensure your output is valid JSON: no markdown, no extra text.

### Examples

Example 1 – Simple direct call
User: "What's today's date?"
Plan:
[{{"tool":"getCurrentDate","args":{{}}}}]

Example 2 – Dependent tool chain
User: "Show me details for 2025-05-28 Project Review"
Plan:
[
  {{"tool": "fetchMeetings", "args": {{}}}},
  {{"tool": "fetchMeetingDetails", "args": {{"meetingId": "{{{{prev:0.meetings[0].meetingId}}}}"}}}}
]

Your response must contain only the JSON plan, nothing else.\
"""


def _describe_tool(definition) -> str:
    return (
        f"Tool name: {definition.name}\n"
        f"Description: {definition.description}\n"
        f"Parameters: {json.dumps(definition.parameters.model_dump(), indent=2)}"
    )


def planner_prompt(assistant: Assistant) -> str:
    return PLANNER_SYSTEM_PROMPT.format(
        assistant_prompt=assistant.system_prompt,
        tool_schemas="\n\n".join(_describe_tool(d) for d in assistant.tool_definitions()),
        sentinel=TOOL_NOT_AVAILABLE,
    )


async def request_plan(
    client: ModelClient,
    messages: list[dict],
    assistant: Assistant,
) -> list[Step]:
    """
    Ask the model for a plan and normalize it.

    Raises UpstreamModelError if the model call fails and PlanParseError if
    the reply holds no usable plan.
    """
    display.calling_model(f"plan from {assistant.name}")
    content = await client.complete(
        [{"role": "system", "content": planner_prompt(assistant)}, *messages],
        temperature=0.0,
        max_tokens=400,
    )
    return normalize_plan(content)
