from typing import Dict, List, Any, Optional
import asyncio
import threading
from collections import defaultdict
import structlog
from langchain_core.messages import BaseMessage, HumanMessage, AIMessage

logger = structlog.get_logger(__name__)


class RuntimeMemory:
    """In-process chat memory for active sessions

    Stores each saved turn as a human/AI message pair under ``session_id``
    and exposes the save/load surface agent executors expect from a memory.
    """

    def __init__(
        self,
        session_id: str = "default",
        input_key: Optional[str] = None,
        output_key: str = "output",
        memory_key: str = "chat_history",
        max_messages: int = 100
    ):
        self.session_id = session_id
        self.input_key = input_key
        self.output_key = output_key
        self.memory_key = memory_key
        self.max_messages = max_messages
        self.conversations: Dict[str, List[BaseMessage]] = defaultdict(list)
        self._lock = asyncio.Lock()
        self._sync_lock = threading.Lock()

    @property
    def memory_variables(self) -> List[str]:
        return [self.memory_key]

    @property
    def messages(self) -> List[BaseMessage]:
        """Copy of the current session history"""
        return list(self.conversations.get(self.session_id, []))

    def save_context(self, inputs: Dict[str, Any], outputs: Dict[str, Any]) -> None:
        """Save one turn to the session history"""

        with self._sync_lock:
            self._append_turn(inputs, outputs)

    async def asave_context(self, inputs: Dict[str, Any], outputs: Dict[str, Any]) -> None:
        async with self._lock:
            with self._sync_lock:
                self._append_turn(inputs, outputs)

    def load_memory_variables(self, inputs: Dict[str, Any]) -> Dict[str, Any]:
        return {self.memory_key: self.messages}

    async def aload_memory_variables(self, inputs: Dict[str, Any]) -> Dict[str, Any]:
        async with self._lock:
            return self.load_memory_variables(inputs)

    def clear(self) -> None:
        """Clear all data for the current session"""

        with self._sync_lock:
            self.conversations.pop(self.session_id, None)

    async def aclear(self) -> None:
        async with self._lock:
            self.clear()

    def _append_turn(self, inputs: Dict[str, Any], outputs: Dict[str, Any]):
        history = self.conversations[self.session_id]
        history.append(HumanMessage(content=self._input_text(inputs)))
        history.append(AIMessage(content=self._output_text(outputs)))

        # Limit conversation history to max_messages
        if len(history) > self.max_messages:
            self.conversations[self.session_id] = history[-self.max_messages:]

        logger.debug("Saved turn", session_id=self.session_id, messages=len(self.conversations[self.session_id]))

    def _input_text(self, inputs: Dict[str, Any]) -> str:
        if self.input_key is not None:
            return str(inputs[self.input_key])

        # Without an input_key the prompt must be the only non-memory input
        candidates = [key for key in inputs if key != self.memory_key]
        if len(candidates) != 1:
            raise ValueError(f"One input key expected, got {candidates}")
        return str(inputs[candidates[0]])

    def _output_text(self, outputs: Dict[str, Any]) -> str:
        if self.output_key not in outputs:
            raise KeyError(f"Output key '{self.output_key}' missing from outputs: {list(outputs)}")
        value = outputs[self.output_key]
        return value if isinstance(value, str) else str(value)
