"""Shared fixtures for the tool-aware memory tests."""

import asyncio
from typing import Dict, Any, List, Tuple

import pytest
import structlog
from langchain_core.agents import AgentAction, AgentStep


class RecordingMemory:
    """Memory double that records every saved turn."""

    def __init__(self, output_key: str = "output"):
        self.output_key = output_key
        self.saved: List[Tuple[Dict[str, Any], Dict[str, Any]]] = []
        self.fail_with = None

    def save_context(self, inputs: Dict[str, Any], outputs: Dict[str, Any]) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.saved.append((inputs, outputs))

    async def asave_context(self, inputs: Dict[str, Any], outputs: Dict[str, Any]) -> None:
        await asyncio.sleep(0)
        self.save_context(inputs, outputs)

    def load_memory_variables(self, inputs: Dict[str, Any]) -> Dict[str, Any]:
        return {"history": [outputs.get(self.output_key) for _, outputs in self.saved]}

    @property
    def last_output(self) -> Any:
        return self.saved[-1][1][self.output_key]


class SyncOnlyMemory:
    """Memory double without an async save path."""

    def __init__(self):
        self.saved = []

    def save_context(self, inputs, outputs):
        self.saved.append((inputs, outputs))


def make_step(tool: str, tool_input: Any, observation: Any) -> AgentStep:
    return AgentStep(
        action=AgentAction(tool=tool, tool_input=tool_input, log=f"Invoking {tool}"),
        observation=observation
    )


@pytest.fixture
def memory() -> RecordingMemory:
    return RecordingMemory()


@pytest.fixture
def web_search_step() -> AgentStep:
    return make_step("web_search", {"query": "n8n"}, {"results": "10 hits"})


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.contextvars.clear_contextvars()
