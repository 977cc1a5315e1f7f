from typing import Any, Sequence, NamedTuple
import json
from datetime import date, datetime, time
from pydantic import BaseModel

from toolfold.domain.models.tool_fold import (
    AgentStepRecord, FoldPosition, DEFAULT_MAX_OBSERVATION_LENGTH
)


TRUNCATION_MARKER = " …[truncated]"
LINE_SEPARATOR = "\n\n"


class RenderResult(NamedTuple):
    """Outcome of rendering a value as compact JSON"""
    text: str
    ok: bool


def serialize_value(value: Any) -> RenderResult:
    """Render a value as compact JSON without raising

    Values JSON has no notation for (dates, sets, pydantic models, arbitrary
    objects) are rendered inside the structure; only a value that cannot be
    rendered at all falls back to its plain text.
    """

    try:
        text = json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=_json_default)
        return RenderResult(text, True)
    except Exception:
        return RenderResult(_fallback_text(value), False)


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return list(value)
    return str(value)


def _fallback_text(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        pass
    try:
        return repr(value)
    except Exception:
        return f"<unrenderable {type(value).__name__}>"


def format_args(tool_input: Any) -> str:
    """Render tool arguments; strings pass through verbatim"""

    if isinstance(tool_input, str):
        return tool_input
    return serialize_value({} if tool_input is None else tool_input).text


def format_observation(
    observation: Any,
    max_length: int = DEFAULT_MAX_OBSERVATION_LENGTH,
    has_observation: bool = True
) -> str:
    """Render a tool observation and truncate it to max_length characters"""

    if not has_observation:
        return ""

    raw = observation if isinstance(observation, str) else serialize_value(observation).text
    if len(raw) > max_length:
        return raw[:max_length] + TRUNCATION_MARKER
    return raw


def format_tool_call(step: AgentStepRecord, max_observation_length: int = DEFAULT_MAX_OBSERVATION_LENGTH) -> str:
    args = format_args(step.tool_input)
    observation = format_observation(step.observation, max_observation_length, step.has_observation)
    return f"tool call: {step.tool_name}({args}) => {observation}"


def build_tool_summary(
    steps: Sequence[AgentStepRecord],
    max_observation_length: int = DEFAULT_MAX_OBSERVATION_LENGTH
) -> str:
    """One line per tool call, in execution order, separated by a blank line"""

    if not steps:
        return ""
    return LINE_SEPARATOR.join(format_tool_call(step, max_observation_length) for step in steps)


def compose_answer(tool_summary: str, answer_text: str, position: FoldPosition, joiner: str) -> str:
    """Place the tool summary relative to the answer text"""

    position = FoldPosition(position)
    if position == FoldPosition.PREPEND:
        return tool_summary + joiner + answer_text
    if position == FoldPosition.APPEND:
        return answer_text + joiner + tool_summary
    return tool_summary
