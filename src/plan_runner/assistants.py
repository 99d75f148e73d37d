# assistants.py
# Named bundles of a system prompt, a tool registry and an optional
# post-process hook. The router picks one per request; the executor only
# ever sees the tools of that one assistant.

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from plan_runner.models import ToolDefinition, ToolEntry
from plan_runner.tools import TOOLS

PostProcess = Callable[[str, Any, str], Awaitable[Any]]


@dataclass
class Assistant:
    name: str
    description: str
    system_prompt: str
    tools: dict[str, ToolEntry] = field(default_factory=dict)
    post_process: PostProcess | None = None

    def tool_definitions(self) -> list[ToolDefinition]:
        return [entry.definition for entry in self.tools.values()]


# ---------------------------------------------------------------------------
# Date assistant
# ---------------------------------------------------------------------------

DATE_SYSTEM_PROMPT = """\
You are DateAssistant. You can use two tools:
- getCurrentDate(offset): returns today's date or a shifted date (offset in days; +1 = tomorrow, -1 = yesterday).
- getDayOfWeek(date): returns the weekday.

When the user asks things like "2 days later" or "3 days ago", use getCurrentDate with the appropriate offset.
Then use getDayOfWeek if they want to know the weekday.
If the request has nothing to do with dates or days, return TOOL_NOT_AVAILABLE.
Return plans as pure JSON only.\
"""

date_assistant = Assistant(
    name="dateAssistant",
    description="Answers questions about today's date, relative dates and weekdays.",
    system_prompt=DATE_SYSTEM_PROMPT,
    tools={
        "getCurrentDate": TOOLS["getCurrentDate"].model_copy(update={"return_raw": True}),
        "getDayOfWeek": TOOLS["getDayOfWeek"].model_copy(update={"return_raw": True}),
    },
)


# ---------------------------------------------------------------------------
# Meeting assistant
# ---------------------------------------------------------------------------

MEETING_SYSTEM_PROMPT = """\
You are MeetingAssistant, an intelligent assistant for cplace meeting data.

You can use the following tools:

1. fetchMeetings
- Fetches all available meetings from cplace and returns their names and IDs.
- Parameters: {}
- Example: { "tool": "fetchMeetings", "args": {} }

2. fetchMeetingDetails
- Fetches detailed topics, topic points, and minutes for a given meeting.
- Parameters: { "meetingId": "<id string>" }
- "meetingId" must be a valid ID like "page/abc123".
- Example: { "tool": "fetchMeetingDetails", "args": { "meetingId": "page/xyz" } }

3. generateActions
- Suggests follow-up actions from meeting minutes.
- Parameters: { "topicPointTitle": "<string>", "minutes": "<string>", "topicName": "<optional>" }
- Always use the topic point's title (not its ID) as the 'topicPointTitle' parameter.
- Never use 'id', 'topic', or 'topicId'; they are not valid parameters.

Decision logic (IMPORTANT):
- If the user provides a meeting ID (starts with "page/" or long alphanumeric with no spaces), call fetchMeetingDetails directly.
- If the user provides a meeting name (contains a date like "2025-05-28" or words/spaces), first call fetchMeetings to retrieve all meetings, find the one whose name includes that text, and then call fetchMeetingDetails with that meeting's ID.
- Never call fetchMeetingDetails without a valid meetingId.
- Do not guess IDs.

When uncertain, prefer the two-step plan (fetchMeetings → fetchMeetingDetails).\
"""

DETAILS_FOLLOW_UP = "Would you like me to generate actions for any of these topic points?"


async def _meeting_post_process(tool_name: str, result: Any, user_query: str = "") -> Any:
    if tool_name == "fetchMeetingDetails" and isinstance(result, str):
        return f"{result}\n\n{DETAILS_FOLLOW_UP}"
    return result


meeting_assistant = Assistant(
    name="meetingAssistant",
    description="Lists cplace meetings, shows their topics and minutes, and suggests follow-up actions.",
    system_prompt=MEETING_SYSTEM_PROMPT,
    tools={
        "fetchMeetings": TOOLS["fetchMeetings"],
        "fetchMeetingDetails": TOOLS["fetchMeetingDetails"],
        "generateActions": TOOLS["generateActions"],
    },
    post_process=_meeting_post_process,
)


ASSISTANTS: dict[str, Assistant] = {
    date_assistant.name: date_assistant,
    meeting_assistant.name: meeting_assistant,
}

DEFAULT_ASSISTANT = date_assistant.name
