from typing import Dict, Any, Optional
import inspect
from langchain_core.memory import BaseMemory

from toolfold.domain.models.tool_fold import ToolFoldConfig, ToolFoldTurn, DEFAULT_OUTPUT_KEY
from toolfold.domain.formatting.tool_summary import build_tool_summary, compose_answer
from toolfold.domain.memory.base import ConversationMemory, supports_persist
from toolfold.infrastructure.observability.logging import memory_logger


_OWN_ATTRIBUTES = frozenset({"_memory", "_config"})
_PYDANTIC_STATE = ("__dict__", "__pydantic_fields_set__", "__pydantic_extra__", "__pydantic_private__")


class ToolFoldingMemory:
    """Persist-turn interception shared by the tool-aware memory wrappers

    Subclasses provide ``wrapped_memory`` and ``tool_fold_config``. The save
    always goes to the wrapped memory's own method, never back through a
    wrapper.
    """

    def save_context(self, inputs: Dict[str, Any], outputs: Dict[str, Any]) -> None:
        """Fold tool calls into the answer and save through the wrapped memory"""

        return self.wrapped_memory.save_context(inputs, self._fold_outputs(outputs))

    async def asave_context(self, inputs: Dict[str, Any], outputs: Dict[str, Any]) -> None:
        """Async variant of save_context

        Memories without ``asave_context`` are saved through their sync
        ``save_context``.
        """

        memory = self.wrapped_memory
        folded = self._fold_outputs(outputs)
        asave = getattr(memory, "asave_context", None)
        if asave is None:
            return memory.save_context(inputs, folded)

        result = asave(inputs, folded)
        if inspect.isawaitable(result):
            return await result
        return result

    def _fold_outputs(self, outputs: Dict[str, Any]) -> Dict[str, Any]:
        """Return outputs unchanged when no tool ran, else a copy with the folded answer"""

        if not outputs:
            return outputs

        memory = self.wrapped_memory
        config = self.tool_fold_config
        output_key = _resolve_output_key(memory)
        turn = ToolFoldTurn.from_outputs(outputs, output_key)
        steps = config.select_steps(turn.steps)
        if not steps:
            return outputs

        tool_summary = build_tool_summary(steps, config.max_observation_length)
        composed = compose_answer(tool_summary, turn.answer_text, config.position, config.joiner)

        memory_logger.log_fold(
            memory_type=type(memory).__name__,
            output_key=output_key,
            tool_names=[step.tool_name for step in steps],
            position=config.position.value,
            summary_length=len(tool_summary)
        )

        edited_outputs = dict(outputs)
        edited_outputs[output_key] = composed
        return edited_outputs


def _resolve_output_key(memory: Any) -> str:
    output_key = getattr(memory, "output_key", None)
    return output_key if isinstance(output_key, str) and output_key else DEFAULT_OUTPUT_KEY


class ToolAwareMemory(ToolFoldingMemory):
    """Wraps an arbitrary memory object and folds tool calls into saved turns

    Only ``save_context`` and ``asave_context`` are intercepted. Every other
    attribute read, write or call goes to the wrapped memory at the time it
    happens, and ``len()``, ``iter()``, ``in``, ``bool()`` and ``==`` are
    forwarded too. ``asave_context`` is always present on the wrapper, even
    for a memory that only saves synchronously.
    """

    def __init__(self, memory: ConversationMemory, config: Optional[ToolFoldConfig] = None):
        if not supports_persist(memory):
            raise TypeError(
                f"{type(memory).__name__} has no save_context or asave_context; cannot make it tool-aware"
            )
        object.__setattr__(self, "_memory", memory)
        object.__setattr__(self, "_config", config or ToolFoldConfig())

    @property
    def wrapped_memory(self) -> ConversationMemory:
        return self._memory

    @property
    def tool_fold_config(self) -> ToolFoldConfig:
        return self._config

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup on the wrapper fails
        if name in _OWN_ATTRIBUTES:
            raise AttributeError(name)
        return getattr(self._memory, name)

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _OWN_ATTRIBUTES:
            raise AttributeError(f"{name} is read-only")
        setattr(self._memory, name, value)

    def __delattr__(self, name: str) -> None:
        delattr(self._memory, name)

    def __dir__(self):
        return sorted(set(dir(type(self))) | set(dir(self._memory)))

    def __len__(self) -> int:
        return len(self._memory)

    def __iter__(self):
        return iter(self._memory)

    def __contains__(self, item: Any) -> bool:
        return item in self._memory

    def __bool__(self) -> bool:
        return bool(self._memory)

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, ToolFoldingMemory):
            other = other.wrapped_memory
        return self._memory == other

    def __hash__(self) -> int:
        return hash(self._memory)

    def __repr__(self) -> str:
        return f"ToolAwareMemory({self._memory!r})"


def _bind_langchain_memory(memory: BaseMemory, config: ToolFoldConfig) -> BaseMemory:
    """Tool-aware view of a LangChain memory that is still an instance of its class

    The view is an instance of a subclass of ``type(memory)`` sharing the
    memory's pydantic state, so chains and agent executors accept it and
    reads and writes on either object are seen by both.
    """

    memory_cls = type(memory)
    view_cls = type(memory_cls)(
        f"ToolAware{memory_cls.__name__}",
        (ToolFoldingMemory, memory_cls),
        {
            "__module__": memory_cls.__module__,
            "__qualname__": f"ToolAware{memory_cls.__qualname__}",
            "wrapped_memory": property(lambda self: memory),
            "tool_fold_config": property(lambda self: config),
        }
    )

    view = object.__new__(view_cls)
    for slot in _PYDANTIC_STATE:
        object.__setattr__(view, slot, getattr(memory, slot, None))
    return view


def make_tool_aware(memory: ConversationMemory, config: Optional[ToolFoldConfig] = None, **overrides) -> Any:
    """Wrap a memory so saved turns carry a summary of their tool calls

    ``overrides`` are ToolFoldConfig fields (``position``, ``joiner``,
    ``max_observation_length``, ``include_tools``, ``exclude_tools``) and are
    validated here; an invalid value raises ToolFoldConfigurationError.
    A LangChain ``BaseMemory`` comes back as an instance of its own class;
    any other memory comes back as a ToolAwareMemory. Wrapping an already
    tool-aware memory rewraps its inner memory so turns are folded once.
    """

    fold_config = ToolFoldConfig.build(config, **overrides) if (config is None or overrides) else config

    if isinstance(memory, ToolFoldingMemory):
        memory = memory.wrapped_memory

    if isinstance(memory, BaseMemory):
        return _bind_langchain_memory(memory, fold_config)
    return ToolAwareMemory(memory, fold_config)


def resolve_agent_memory(
    memory: Any,
    save_tool_calls: bool = True,
    config: Optional[ToolFoldConfig] = None
) -> Any:
    """Memory to hand to the agent executor

    Returns None without a memory, the memory itself when tool calls are not
    to be saved, else the tool-aware memory.
    """

    if memory is None:
        return None
    if not save_tool_calls:
        return memory
    if isinstance(memory, ToolFoldingMemory) and config is None:
        return memory
    return make_tool_aware(memory, config)
