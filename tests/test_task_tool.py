"""
Tests for subagent_dispatch/task_tool.py - the host-facing task tool.
"""

import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from tests.utils import HOST_TOOLS, FakeAsyncClient, run_tests
from subagent_dispatch.agent_types import SubAgentType
from subagent_dispatch.errors import InvalidTaskRequest
from subagent_dispatch.executor import SubagentExecutor
from subagent_dispatch.task_tool import TASK_TOOL, parse_tool_args, run_task_tool
from subagent_dispatch.utils.runtime_config import ModelSettings, RuntimeOptions

SETTINGS = ModelSettings(base_url = "http://127.0.0.1:11434/v1", api_key = "test-key", model = "qwen3")


def _executor(client):
    return SubagentExecutor(
        client = client,
        settings = SETTINGS,
        runtime_options = RuntimeOptions(),
        tool_schemas = HOST_TOOLS,
    )


def test_schema_lists_every_type():
    function = TASK_TOOL["function"]
    assert function["name"] == "task"
    assert function["parameters"]["properties"]["subagent_type"]["enum"] == [
        agent_type.value for agent_type in SubAgentType
    ]
    assert set(function["parameters"]["required"]) == {"subagent_type", "description", "prompt"}
    for agent_type in SubAgentType:
        assert f"- {agent_type.value}:" in function["description"]
    print("PASS: test_schema_lists_every_type")


def test_parse_tool_args():
    assert parse_tool_args({"a": 1}) == {"a": 1}
    assert parse_tool_args(None) == {}
    assert parse_tool_args('{"prompt": "hi"}') == {"prompt": "hi"}
    assert parse_tool_args('{"prompt": "line\x01one"}') == {"prompt": "lineone"}

    for bad in ["{not json", '["list"]']:
        try:
            parse_tool_args(bad)
        except InvalidTaskRequest:
            pass
        else:
            raise AssertionError(f"Expected InvalidTaskRequest for {bad!r}")
    print("PASS: test_parse_tool_args")


def test_missing_arguments_rejected():
    client = FakeAsyncClient(content = "ok")
    executor = _executor(client)
    cases = {
        "subagent_type": {"description": "d", "prompt": "p"},
        "prompt": {"subagent_type": "plan", "description": "d"},
        "description": {"subagent_type": "plan", "prompt": "p", "description": "  "},
    }
    for key, arguments in cases.items():
        try:
            asyncio.run(run_task_tool(executor, arguments))
        except InvalidTaskRequest as exc:
            assert f"Missing '{key}' argument" in str(exc)
        else:
            raise AssertionError(f"Expected missing {key}")
    assert client.requests == []
    print("PASS: test_missing_arguments_rejected")


def test_unknown_type_rejected():
    client = FakeAsyncClient(content = "ok")
    try:
        asyncio.run(
            run_task_tool(
                _executor(client),
                '{"subagent_type": "wizard", "description": "d", "prompt": "p"}',
            )
        )
    except InvalidTaskRequest as exc:
        assert "wizard" in str(exc)
        assert "plan" in str(exc)
    else:
        raise AssertionError("Expected InvalidTaskRequest")
    assert client.requests == []
    print("PASS: test_unknown_type_rejected")


def test_tool_call_runs_subagent():
    client = FakeAsyncClient(content = "Found it.")
    arguments = (
        '{"subagent_type": "explore", "description": "Find loaders", '
        '"prompt": "Locate every config loader", "model": "llama3"}'
    )
    result = asyncio.run(run_task_tool(_executor(client), arguments))

    request = client.requests[0]
    assert request["model"] == "llama3"
    assert request["messages"][-1] == {"role": "user", "content": "Locate every config loader"}
    assert request["tools"] == HOST_TOOLS
    assert result.task_name == "Find loaders"
    assert result.startswith("=== Subagent Task: Locate every config loader ===")
    assert result.raw_model_output == "Found it."
    print("PASS: test_tool_call_runs_subagent")


def test_blank_model_uses_default():
    client = FakeAsyncClient(content = "ok")
    asyncio.run(
        run_task_tool(
            _executor(client),
            {"subagent_type": "plan", "description": "d", "prompt": "p", "model": " "},
        )
    )
    assert client.requests[0]["model"] == "qwen3"
    assert "tools" not in client.requests[0]
    print("PASS: test_blank_model_uses_default")


if __name__ == "__main__":
    sys.exit(0 if run_tests([
        test_schema_lists_every_type,
        test_parse_tool_args,
        test_missing_arguments_rejected,
        test_unknown_type_rejected,
        test_tool_call_runs_subagent,
        test_blank_model_uses_default,
    ]) else 1)
