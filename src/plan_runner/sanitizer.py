# sanitizer.py
# Allow-list a step's arguments against the tool's declared parameters.

from typing import Any

from plan_runner.models import ToolDefinition


def allowed_keys(definition: ToolDefinition | dict[str, Any]) -> list[str]:
    """Declared parameter names, accepting either a model or a raw schema dict."""
    if isinstance(definition, ToolDefinition):
        return list(definition.parameters.properties)
    if "function" in definition:
        definition = definition["function"]
    properties = (definition.get("parameters") or {}).get("properties") or {}
    return list(properties)


def sanitize_args(
    definition: ToolDefinition | dict[str, Any],
    args: dict[str, Any],
) -> dict[str, Any]:
    """
    Keep only the arguments the schema declares.

    Unknown keys are dropped without error. A schema that cannot be read
    leaves the arguments untouched rather than failing the step.
    """
    try:
        allowed = allowed_keys(definition)
    except (AttributeError, TypeError):
        return args

    return {key: args[key] for key in allowed if key in args}
