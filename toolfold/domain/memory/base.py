from typing import Protocol, Dict, Any, runtime_checkable


PERSIST_OPERATIONS = ("save_context", "asave_context")


@runtime_checkable
class ConversationMemory(Protocol):
    """Capability a memory must expose to be made tool-aware

    ``output_key`` is optional on real memories; ``"output"`` is assumed
    when it is missing.
    """

    def save_context(self, inputs: Dict[str, Any], outputs: Dict[str, Any]) -> None:
        ...

    async def asave_context(self, inputs: Dict[str, Any], outputs: Dict[str, Any]) -> None:
        ...


def supports_persist(memory: Any) -> bool:
    """True if the object exposes at least one persist-turn operation"""
    return any(callable(getattr(memory, name, None)) for name in PERSIST_OPERATIONS)
