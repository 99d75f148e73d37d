# router.py
# Ask the model which assistant should handle a message.
# Routing never fails a request: any problem falls back to the default.

import json

from pydantic import ValidationError

from plan_runner import display
from plan_runner.assistants import ASSISTANTS, DEFAULT_ASSISTANT, Assistant
from plan_runner.errors import UpstreamModelError
from plan_runner.llm import ModelClient
from plan_runner.models import RouterDecision


def router_prompt(assistants: dict[str, Assistant]) -> str:
    summaries = "\n\n".join(
        f"Assistant: {assistant.name}\nPurpose: {assistant.description}"
        for assistant in assistants.values()
    )
    return (
        "You are an intelligent router that decides which assistant should handle a user's request.\n"
        "Each assistant has different tools and purposes.\n\n"
        "Choose ONE assistant from the list below.\n"
        'Respond ONLY in JSON format: {"assistantName": "<name>", "reason": "<why this assistant fits>"}.\n\n'
        f"Available assistants:\n{summaries}"
    )


def parse_decision(content: str, assistants: dict[str, Assistant]) -> RouterDecision | None:
    """Return the decision if `content` names a known assistant, else None."""
    try:
        decision = RouterDecision.model_validate(json.loads(content))
    except (json.JSONDecodeError, ValidationError):
        return None
    if decision.assistant_name not in assistants:
        return None
    return decision


async def select_assistant(
    client: ModelClient,
    user_message: str,
    assistants: dict[str, Assistant] = ASSISTANTS,
    default: str = DEFAULT_ASSISTANT,
) -> Assistant:
    display.calling_model("assistant routing")
    messages = [
        {"role": "system", "content": router_prompt(assistants)},
        {"role": "user", "content": f'User request: "{user_message}"'},
    ]
    try:
        content = await client.complete(messages, temperature=0.0, max_tokens=200)
    except UpstreamModelError as exc:
        display.router_fallback(default, exc.detail)
        return assistants[default]

    decision = parse_decision(content, assistants)
    if decision is None:
        display.router_fallback(default, f"unusable router reply: {content}")
        return assistants[default]

    display.router_selected(decision.assistant_name, decision.reason)
    return assistants[decision.assistant_name]
