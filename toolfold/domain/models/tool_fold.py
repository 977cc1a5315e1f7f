from typing import Dict, Any, List, Optional, FrozenSet, Mapping, Sequence
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict, ValidationError, field_validator

from toolfold.exceptions import ToolFoldConfigurationError


DEFAULT_OUTPUT_KEY = "output"
DEFAULT_JOINER = "\n\n"
DEFAULT_MAX_OBSERVATION_LENGTH = 4000
INTERMEDIATE_STEPS_KEYS = ("intermediate_steps", "intermediateSteps")


class FoldPosition(str, Enum):
    """Where the tool summary goes relative to the answer text"""
    PREPEND = "prepend"
    APPEND = "append"
    REPLACE = "replace"


class ToolFoldConfig(BaseModel):
    """Construction-time configuration for folding tool calls into memory"""
    model_config = ConfigDict(frozen=True, extra="forbid")

    position: FoldPosition = Field(default=FoldPosition.PREPEND, description="Placement of the tool summary")
    joiner: str = Field(default=DEFAULT_JOINER, description="Separator between tool summary and answer")
    max_observation_length: int = Field(
        default=DEFAULT_MAX_OBSERVATION_LENGTH,
        gt=0,
        description="Rendered observations longer than this are truncated"
    )
    include_tools: Optional[FrozenSet[str]] = Field(None, description="Only these tools are summarized")
    exclude_tools: Optional[FrozenSet[str]] = Field(None, description="These tools are never summarized")

    @field_validator("include_tools", "exclude_tools", mode="before")
    @classmethod
    def _coerce_tool_names(cls, value):
        if value is None:
            return None
        if isinstance(value, str):
            return frozenset([value])
        return frozenset(value)

    @classmethod
    def build(cls, config: Optional["ToolFoldConfig"] = None, **overrides) -> "ToolFoldConfig":
        """Merge overrides over an existing config (or the defaults) and validate"""

        values: Dict[str, Any] = config.model_dump() if config is not None else {}
        values.update({key: value for key, value in overrides.items() if value is not None})

        try:
            return cls(**values)
        except ValidationError as exc:
            raise ToolFoldConfigurationError.from_validation_error(exc) from exc

    def select_steps(self, steps: Sequence["AgentStepRecord"]) -> List["AgentStepRecord"]:
        """Apply the include filter, then the exclude filter, keeping order"""

        selected = list(steps)
        if self.include_tools is not None:
            selected = [step for step in selected if step.tool_name in self.include_tools]
        if self.exclude_tools:
            selected = [step for step in selected if step.tool_name not in self.exclude_tools]
        return selected


class AgentStepRecord(BaseModel):
    """One recorded tool invocation within a turn"""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    tool_name: str = Field(min_length=1, description="Name of the invoked tool")
    tool_input: Any = Field(None, description="Arguments supplied to the tool")
    observation: Any = Field(None, description="Tool result")
    has_observation: bool = Field(default=True, description="False until the tool has returned")

    @classmethod
    def from_step(cls, step: Any) -> Optional["AgentStepRecord"]:
        """Normalize an agent step; returns None for steps without a tool reference

        Accepts LangChain ``AgentStep`` objects, ``(AgentAction, observation)``
        tuples and ``{"action": {...}, "observation": ...}`` mappings.
        """

        if step is None:
            return None

        has_observation = True
        if isinstance(step, Mapping):
            action = step.get("action")
            has_observation = "observation" in step
            observation = step.get("observation")
        elif isinstance(step, (tuple, list)):
            if not step:
                return None
            action = step[0]
            has_observation = len(step) > 1
            observation = step[1] if has_observation else None
        else:
            action = getattr(step, "action", None)
            has_observation = hasattr(step, "observation")
            observation = getattr(step, "observation", None)

        if isinstance(action, Mapping):
            tool_name = action.get("tool")
            tool_input = action.get("tool_input", action.get("toolInput"))
        else:
            tool_name = getattr(action, "tool", None)
            tool_input = getattr(action, "tool_input", None)

        if not isinstance(tool_name, str) or not tool_name:
            return None

        return cls(
            tool_name=tool_name,
            tool_input=tool_input,
            observation=observation,
            has_observation=has_observation
        )


class ToolFoldTurn(BaseModel):
    """The parts of a turn's outputs the fold reads"""
    model_config = ConfigDict(frozen=True)

    output_key: str = Field(default=DEFAULT_OUTPUT_KEY)
    answer_text: str = Field(default="")
    steps: List[AgentStepRecord] = Field(default_factory=list)

    @classmethod
    def from_outputs(cls, outputs: Mapping[str, Any], output_key: str = DEFAULT_OUTPUT_KEY) -> "ToolFoldTurn":
        """Read answer text and tool steps from a turn's outputs mapping"""

        outputs = outputs or {}
        answer = outputs.get(output_key)

        raw_steps = None
        for key in INTERMEDIATE_STEPS_KEYS:
            if outputs.get(key) is not None:
                raw_steps = outputs[key]
                break

        steps = []
        for raw_step in raw_steps or []:
            record = AgentStepRecord.from_step(raw_step)
            if record is not None:
                steps.append(record)

        return cls(
            output_key=output_key,
            answer_text=answer if isinstance(answer, str) else "",
            steps=steps
        )

    @property
    def tool_names(self) -> List[str]:
        return [step.tool_name for step in self.steps]
