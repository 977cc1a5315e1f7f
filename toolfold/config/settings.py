from typing import Dict, Any, Optional, List, Literal, Mapping
import sys
import os
from pydantic import BaseModel, Field, ValidationError

from toolfold.domain.models.tool_fold import (
    ToolFoldConfig, FoldPosition, DEFAULT_JOINER, DEFAULT_MAX_OBSERVATION_LENGTH
)
from toolfold.domain.memory.tool_aware_memory import resolve_agent_memory
from toolfold.infrastructure.observability.logging import setup_logging
from toolfold.exceptions import ToolFoldConfigurationError


ENV_PREFIX = "TOOLFOLD_"


class ToolFoldSettings(BaseModel):
    """Deployment defaults for tool folding and logging"""

    position: FoldPosition = Field(default=FoldPosition.PREPEND)
    joiner: str = Field(default=DEFAULT_JOINER)
    max_observation_length: int = Field(default=DEFAULT_MAX_OBSERVATION_LENGTH, gt=0)
    include_tools: Optional[List[str]] = Field(None)
    exclude_tools: Optional[List[str]] = Field(None)
    save_tool_calls: bool = Field(default=True, description="Wrap agent memory so tool calls are saved")
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")
    log_stream: Literal["stdout", "stderr"] = Field(default="stdout")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ToolFoldSettings":
        """Load settings from TOOLFOLD_* environment variables"""

        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {}

        for field_name in cls.model_fields:
            raw = environ.get(f"{ENV_PREFIX}{field_name.upper()}")
            if raw is None:
                continue
            if field_name in ("include_tools", "exclude_tools"):
                values[field_name] = _split_names(raw)
            elif field_name == "joiner":
                # Allow escaped newlines in env files
                values[field_name] = raw.replace("\\n", "\n").replace("\\t", "\t")
            else:
                values[field_name] = raw

        try:
            return cls(**values)
        except ValidationError as exc:
            raise ToolFoldConfigurationError.from_validation_error(exc) from exc

    def configure_logging(self, service_name: str = "toolfold") -> None:
        setup_logging(
            log_level=self.log_level,
            log_format=self.log_format,
            service_name=service_name,
            stream=getattr(sys, self.log_stream)
        )

    def resolve_memory(self, memory: Any) -> Any:
        """Agent memory with tool folding applied as configured"""
        return resolve_agent_memory(memory, self.save_tool_calls, self.to_fold_config())

    def to_fold_config(self) -> ToolFoldConfig:
        return ToolFoldConfig.build(
            position=self.position,
            joiner=self.joiner,
            max_observation_length=self.max_observation_length,
            include_tools=self.include_tools,
            exclude_tools=self.exclude_tools
        )


def _split_names(raw: str) -> Optional[List[str]]:
    # An empty variable means "not set", not "no tools"
    names = [name.strip() for name in raw.split(",") if name.strip()]
    return names or None
