from toolfold.domain.models.tool_fold import (
    FoldPosition, ToolFoldConfig, AgentStepRecord, ToolFoldTurn
)
from toolfold.domain.memory.tool_aware_memory import (
    ToolFoldingMemory, ToolAwareMemory, make_tool_aware, resolve_agent_memory
)
from toolfold.domain.memory.runtime_memory import RuntimeMemory
from toolfold.config.settings import ToolFoldSettings
from toolfold.exceptions import ToolFoldError, ToolFoldConfigurationError

__version__ = "0.1.0"

__all__ = [
    "FoldPosition",
    "ToolFoldConfig",
    "AgentStepRecord",
    "ToolFoldTurn",
    "ToolFoldingMemory",
    "ToolAwareMemory",
    "make_tool_aware",
    "resolve_agent_memory",
    "RuntimeMemory",
    "ToolFoldSettings",
    "ToolFoldError",
    "ToolFoldConfigurationError",
]
