"""Typed subagent task dispatch on top of an OpenAI-compatible chat backend."""

from .agent_types import (
    AGENT_TYPE_REGISTRY,
    AgentTypeSpec,
    SubAgentType,
    ToolPolicy,
    description,
    get_agent_descriptions,
    parse_agent_type,
    system_prompt,
    tool_policy,
)
from .errors import (
    InvalidTaskRequest,
    ModelConnectionError,
    ModelError,
    ModelTimeoutError,
    SubagentError,
)
from .executor import SubagentExecutor, TaskRequest, TaskResult, build_client, spawn_task
from .formatter import format_task_result
from .prompts import compose_messages
from .task_tool import TASK_TOOL, run_task_tool

__all__ = [
    "AGENT_TYPE_REGISTRY",
    "AgentTypeSpec",
    "SubAgentType",
    "ToolPolicy",
    "description",
    "get_agent_descriptions",
    "parse_agent_type",
    "system_prompt",
    "tool_policy",
    "InvalidTaskRequest",
    "ModelConnectionError",
    "ModelError",
    "ModelTimeoutError",
    "SubagentError",
    "SubagentExecutor",
    "TaskRequest",
    "TaskResult",
    "build_client",
    "spawn_task",
    "format_task_result",
    "compose_messages",
    "TASK_TOOL",
    "run_task_tool",
]
