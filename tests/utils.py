"""
Shared test utilities for this repository.

Provides:
1) Fake AsyncOpenAI-compatible clients (scripted replies, streams, failures)
2) Tool schema constants (OpenAI function-calling format)
3) Environment override helpers
4) In-memory log capture
5) Common test runner
"""

import asyncio
import logging
import os
import traceback
from typing import Any, Callable, Dict, List, Optional


BASH_TOOL = {
    "type": "function",
    "function": {
        "name": "bash",
        "description": "Run a shell command and return stdout+stderr.",
        "parameters": {
            "type": "object",
            "properties": {"command": {"type": "string"}},
            "required": ["command"],
        },
    },
}

READ_FILE_TOOL = {
    "type": "function",
    "function": {
        "name": "read_file",
        "description": "Read text content from a file path.",
        "parameters": {
            "type": "object",
            "properties": {
                "file_path": {"type": "string"},
                "max_lines": {"type": "integer"},
            },
            "required": ["file_path"],
        },
    },
}

HOST_TOOLS = [BASH_TOOL, READ_FILE_TOOL]


class FakeFunction:
    """Tool-call function payload."""

    def __init__(self, name = None, arguments = None):
        self.name = name
        self.arguments = arguments


class FakeToolCall:
    """Tool-call payload (full or stream delta)."""

    def __init__(self, id = None, name = None, arguments = None, index = None):
        self.id = id
        self.type = "function"
        self.index = index
        self.function = FakeFunction(name = name, arguments = arguments)


class FakeMessage:
    """Assistant message payload."""

    def __init__(self, content = "ok", reasoning = None, tool_calls = None):
        self.content = content
        self.reasoning = reasoning
        self.tool_calls = tool_calls


class FakeChoice:
    """Choice wrapper for message or delta payloads."""

    def __init__(self, message = None, delta = None):
        self.message = message
        self.delta = delta


class FakeResponse:
    """Non-stream response object compatible with llm_call helpers."""

    def __init__(self, message = None, choices = None):
        if choices is None:
            choices = [FakeChoice(message = message or FakeMessage())]
        self.choices = choices
        self.id = "fake-id"
        self.model = "fake-model"
        self.usage = {"prompt_tokens": 1, "completion_tokens": 1}


class FakeDelta:
    """Stream delta payload."""

    def __init__(self, content = None, reasoning = None, tool_calls = None):
        self.content = content
        self.reasoning = reasoning
        self.tool_calls = tool_calls


class FakeChunk:
    """Stream chunk payload."""

    def __init__(self, delta):
        self.id = "fake-stream"
        self.model = "fake-model"
        self.choices = [FakeChoice(delta = delta)]


class FakeStream:
    """Async chunk stream that records whether it was closed."""

    def __init__(self, deltas: List[FakeDelta], hang_after: Optional[int] = None):
        self.deltas = list(deltas)
        self.hang_after = hang_after
        self.closed = False
        self.yielded = 0

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self.hang_after is not None and self.yielded >= self.hang_after:
            await asyncio.sleep(3600)
        if self.yielded >= len(self.deltas):
            raise StopAsyncIteration
        delta = self.deltas[self.yielded]
        self.yielded += 1
        return FakeChunk(delta)

    async def close(self):
        self.closed = True


class FakeAsyncClient:
    """
    Fake AsyncOpenAI client recording every request.

    Parameters:
        content: Reply text, or a callable taking the request kwargs.
        reasoning: Reasoning text attached to non-stream replies.
        tool_calls: Tool calls attached to non-stream replies.
        deltas: Stream deltas returned when the request asks for stream.
        error: Exception raised instead of replying.
        delay: Seconds to sleep before replying.
        hang_after: Stream blocks after this many chunks.
    """

    def __init__(
        self,
        content: Any = "ok",
        reasoning: Optional[str] = None,
        tool_calls: Optional[List[FakeToolCall]] = None,
        deltas: Optional[List[FakeDelta]] = None,
        error: Optional[BaseException] = None,
        delay: float = 0.0,
        hang_after: Optional[int] = None,
        response: Optional[FakeResponse] = None,
    ):
        self.chat = self
        self.completions = self
        self.content = content
        self.reasoning = reasoning
        self.tool_calls = tool_calls
        self.deltas = deltas
        self.error = error
        self.delay = delay
        self.hang_after = hang_after
        self.response = response
        self.requests: List[Dict[str, Any]] = []
        self.streams: List[FakeStream] = []
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True
        return False

    async def create(self, **kwargs):
        """Record the request and reply according to the script."""
        self.requests.append(kwargs)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error

        content = self.content(kwargs) if callable(self.content) else self.content

        if kwargs.get("stream"):
            deltas = self.deltas
            if deltas is None:
                deltas = [FakeDelta(content = content)]
            stream = FakeStream(deltas, hang_after = self.hang_after)
            self.streams.append(stream)
            return stream

        if self.response is not None:
            return self.response

        return FakeResponse(
            message = FakeMessage(
                content = content,
                reasoning = self.reasoning,
                tool_calls = self.tool_calls,
            )
        )


class ListLogHandler(logging.Handler):
    """Collect log messages in memory."""

    def __init__(self):
        super().__init__()
        self.messages: List[str] = []

    def emit(self, record):
        self.messages.append(record.getMessage())


def set_env(overrides: Dict[str, Optional[str]]) -> Dict[str, Optional[str]]:
    """Set env variables and return previous snapshot for restoration."""
    before = {}
    for key, value in overrides.items():
        before[key] = os.environ.get(key)
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value
    return before


def restore_env(snapshot: Dict[str, Optional[str]]) -> None:
    """Restore env variables from snapshot."""
    for key, value in snapshot.items():
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value


def run_tests(test_functions: List[Callable[[], None]]) -> bool:
    """
    Run test callables and print a compact summary.

    Parameters:
        test_functions: List of test functions.
    """
    failed = []
    for test_function in test_functions:
        print(f"\n{'=' * 60}")
        print(f"Running: {test_function.__name__}")
        print("=" * 60)
        try:
            test_function()
        except Exception as exc:
            print(f"FAILED: {exc}")
            traceback.print_exc()
            failed.append(test_function.__name__)

    passed = len(test_functions) - len(failed)
    print(f"\n{'=' * 60}")
    print(f"Results: {passed}/{len(test_functions)} passed")
    print("=" * 60)
    if failed:
        print(f"FAILED: {failed}")
        return False
    print("All tests passed!")
    return True
