# tools.py
# Tool registry: every callable the planner may name, with its schema.
# The executor reaches these only through an assistant's registry.
#
# Handlers take the sanitized argument dict and report failure by
# returning an error-shaped value, never by raising.

import math
import re
from datetime import datetime, timedelta, timezone
from typing import Any

from plan_runner.config import get_settings
from plan_runner.cplace import call_cplace_api
from plan_runner.errors import UpstreamModelError
from plan_runner.llm import get_model_client
from plan_runner.models import ToolDefinition, ToolEntry, ToolParameters

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

NO_ACTIONS = "No immediate actions identified."

_BULLET = re.compile(r"^[-\d.•*]+\s*")

ACTIONS_SYSTEM_PROMPT = """\
You are an expert meeting summarizer and action generator.
From a meeting topic point and its minutes, identify concrete next steps as action items.
Prefer to generate 2-4 short, specific, outcome-focused actions.

Examples:
Minutes: "The API test suite needs updates and staging environment is not stable."
Actions:
- Update API test suite to include latest endpoints.
- Stabilize staging environment before next deployment.

Minutes: "General discussion on process flow, nothing pending."
Actions:
- No immediate actions identified.

If nothing actionable is found, return exactly "No immediate actions identified.".
Keep output short and clear.\
"""


# ---------------------------------------------------------------------------
# Date tools
# ---------------------------------------------------------------------------


def _iso(moment: datetime) -> str:
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _as_offset(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_limit(value: Any) -> int | None:
    count = _as_offset(value)
    if count is None or not math.isfinite(count) or count <= 0:
        return None
    return int(count)


async def _tool_get_current_date(args: dict) -> dict:
    moment = datetime.now(timezone.utc)
    offset = _as_offset(args.get("offset"))
    if offset and math.isfinite(offset):
        try:
            moment += timedelta(days=offset)
        except OverflowError:
            return {"error": f"Offset out of range: {offset}"}
    return {"date": _iso(moment)}


async def _tool_get_day_of_week(args: dict) -> dict:
    date = args.get("date")
    if not isinstance(date, str) or not date.strip():
        return {"error": "No date provided."}
    try:
        moment = datetime.fromisoformat(date.strip().replace("Z", "+00:00"))
    except ValueError:
        return {"error": f"Invalid date: {date}"}
    return {"day": WEEKDAYS[moment.weekday()]}


# ---------------------------------------------------------------------------
# Meeting tools
# ---------------------------------------------------------------------------


async def _tool_fetch_meetings(args: dict) -> dict:
    settings = get_settings()
    body = {
        "select": [],
        "where": {
            "type": "dtb.moduleTeamMeeting",
            "spaces": [settings.cplace_meeting_space],
        },
    }
    response = await call_cplace_api("/pages", body)
    if not response.success:
        return {"error": response.error or "Failed to fetch meetings."}

    # cplace wraps the page list as {"data": {"exception": "", "data": [...]}}
    payload = response.data.get("data") if isinstance(response.data, dict) else None
    pages = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(pages, list):
        return {"error": "Invalid API response format."}

    meetings = [
        {"meetingId": page.get("uid"), "id": page.get("uid"), "name": page.get("name")}
        for page in pages
        if isinstance(page, dict)
    ]

    limit = _as_limit(args.get("limit"))
    if limit:
        meetings = meetings[:limit]
    return {"meetings": meetings}


def _reference_body(response_data: Any) -> list:
    payload = response_data.get("data") if isinstance(response_data, dict) else None
    body = payload.get("body") if isinstance(payload, dict) else None
    if not isinstance(body, list):
        return []
    return [item for item in body if isinstance(item, dict)]


def _point_minutes(point: dict) -> str:
    return (
        point.get("short description")
        or point.get("dtb.shortDescription")
        or point.get("shortDescription")
        or ""
    )


async def _tool_fetch_meeting_details(args: dict) -> str:
    meeting_id = args.get("meetingId")
    if not meeting_id:
        return "No meeting ID provided."

    topics_response = await call_cplace_api(
        "/incomingReference",
        {
            "pageId": meeting_id,
            "type": "dtb.moduleTeamMeetingTopicBlock",
            "attribute": "dtb.moduleTeamMeeting",
        },
    )
    if not topics_response.success:
        return f"Failed to fetch meeting details: {topics_response.error}"

    topics = _reference_body(topics_response.data)
    if not topics:
        return "No topics found for this meeting."

    sections: list[str] = []
    for topic in topics:
        points_response = await call_cplace_api(
            "/incomingReference",
            {
                "pageId": topic.get("id"),
                "type": "dtb.moduleTeamMeetingTopicPoint",
                "attribute": "dtb.topic",
                "getAttributes": ["dtb.shortDescription"],
            },
        )
        points = _reference_body(points_response.data) if points_response.success else []

        lines = [f"{topic.get('pageName') or 'Unnamed Topic'}"]
        if not points:
            lines.append("   • No topic points available.")
        for point in points:
            minutes = _point_minutes(point)
            suffix = f" — {minutes}" if minutes else ""
            lines.append(f"   • {point.get('pageName') or 'Untitled Point'}{suffix}")
        sections.append("\n".join(lines))

    return "\n\n".join(sections).strip()


# ---------------------------------------------------------------------------
# Action generation
# ---------------------------------------------------------------------------


def _action_lines(content: str) -> list[str]:
    lines = []
    for raw in content.splitlines():
        line = _BULLET.sub("", raw.strip()).strip()
        if line:
            lines.append(line)
    return lines


async def _tool_generate_actions(args: dict) -> str | dict:
    user_prompt = (
        f"Topic: {args.get('topicName') or '(none)'}\n"
        f"Topic Point: {args.get('topicPointTitle', '')}\n"
        f"Minutes:\n{args.get('minutes', '')}"
    )
    try:
        content = await get_model_client().complete(
            [
                {"role": "system", "content": ACTIONS_SYSTEM_PROMPT},
                {"role": "user", "content": user_prompt},
            ],
            temperature=0.5,
            max_tokens=250,
        )
    except UpstreamModelError as exc:
        return {"error": "Failed to generate actions.", "details": exc.detail}

    actions = _action_lines(content)
    if not actions:
        return NO_ACTIONS
    return "\n".join(f"- {action}" for action in actions)


# ---------------------------------------------------------------------------
# Schemas and registry
# ---------------------------------------------------------------------------


GET_CURRENT_DATE = ToolDefinition(
    name="getCurrentDate",
    description=(
        "Returns the current date/time in ISO 8601 format. Optionally accepts a numeric "
        "offset in days to shift forward or backward from today."
    ),
    parameters=ToolParameters(
        properties={
            "offset": {
                "type": "number",
                "description": "Days to add (positive) or subtract (negative) from today.",
            },
        },
    ),
)

GET_DAY_OF_WEEK = ToolDefinition(
    name="getDayOfWeek",
    description="Takes an ISO date string and returns the day of the week (e.g., Monday).",
    parameters=ToolParameters(
        properties={"date": {"type": "string", "description": "ISO 8601 date string"}},
        required=["date"],
    ),
)

FETCH_MEETINGS = ToolDefinition(
    name="fetchMeetings",
    description="Fetches all meetings from cplace and returns their names and UIDs.",
    parameters=ToolParameters(
        properties={
            "limit": {
                "type": "number",
                "description": "Optional limit for number of meetings to fetch.",
            },
        },
    ),
)

FETCH_MEETING_DETAILS = ToolDefinition(
    name="fetchMeetingDetails",
    description=(
        "Fetches detailed information for a given meeting ID, including topics, topic "
        "points, and minutes (plain text summary)."
    ),
    parameters=ToolParameters(
        properties={
            "meetingId": {
                "type": "string",
                "description": "Unique ID of the meeting to fetch details for.",
            },
        },
        required=["meetingId"],
    ),
)

GENERATE_ACTIONS = ToolDefinition(
    name="generateActions",
    description="Generate relevant action items based on topic point minutes or discussion notes.",
    parameters=ToolParameters(
        properties={
            "topicPointTitle": {"type": "string", "description": "Title of the topic point"},
            "minutes": {"type": "string", "description": "Minutes or discussion text"},
            "topicName": {"type": "string", "description": "Parent topic name (optional)"},
        },
        required=["topicPointTitle", "minutes"],
    ),
)


TOOLS: dict[str, ToolEntry] = {
    "getCurrentDate": ToolEntry(definition=GET_CURRENT_DATE, handler=_tool_get_current_date),
    "getDayOfWeek": ToolEntry(definition=GET_DAY_OF_WEEK, handler=_tool_get_day_of_week),
    "fetchMeetings": ToolEntry(definition=FETCH_MEETINGS, handler=_tool_fetch_meetings),
    "fetchMeetingDetails": ToolEntry(
        definition=FETCH_MEETING_DETAILS, handler=_tool_fetch_meeting_details
    ),
    "generateActions": ToolEntry(definition=GENERATE_ACTIONS, handler=_tool_generate_actions),
}
