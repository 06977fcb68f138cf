"""Closed set of subagent types and their static role/tool policy table."""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from .errors import InvalidTaskRequest


class SubAgentType(str, Enum):
    """Task archetypes a primary agent can delegate to."""

    GENERAL_PURPOSE = "general-purpose"
    EXPLORE = "explore"
    PLAN = "plan"
    CODE_REVIEW = "code-review"
    TEST_RUNNER = "test-runner"


class ToolPolicy(str, Enum):
    """Whether a spawned task may see the host tool registry."""

    NO_TOOLS = "no_tools"
    FULL_TOOL_SET = "full_tool_set"


@dataclass(frozen = True)
class AgentTypeSpec:
    """Static description, role prompt and tool policy of one subagent type."""

    description: str
    tool_policy: ToolPolicy
    system_prompt: Optional[str] = None


AGENT_TYPE_REGISTRY: Mapping[SubAgentType, AgentTypeSpec] = MappingProxyType({
    SubAgentType.GENERAL_PURPOSE: AgentTypeSpec(
        description = "General-purpose agent for complex tasks",
        tool_policy = ToolPolicy.FULL_TOOL_SET,
    ),
    SubAgentType.EXPLORE: AgentTypeSpec(
        description = "Fast agent for exploring codebases",
        tool_policy = ToolPolicy.FULL_TOOL_SET,
        system_prompt = (
            "You are a codebase exploration agent. Your goal is to quickly find files, "
            "search code, and answer questions about the codebase structure. "
            "Be thorough but efficient in your exploration."
        ),
    ),
    SubAgentType.PLAN: AgentTypeSpec(
        description = "Software architect agent for designing implementation plans",
        tool_policy = ToolPolicy.NO_TOOLS,
        system_prompt = (
            "You are a software architect agent. Your goal is to design implementation plans "
            "by exploring the codebase and providing step-by-step plans. Focus on: "
            "1) Understanding existing patterns, 2) Identifying critical files, "
            "3) Considering architectural trade-offs."
        ),
    ),
    SubAgentType.CODE_REVIEW: AgentTypeSpec(
        description = "Code reviewer agent for analyzing code quality",
        tool_policy = ToolPolicy.FULL_TOOL_SET,
        system_prompt = (
            "You are a code reviewer agent. Your goal is to analyze code quality, "
            "identify potential bugs, suggest improvements, and ensure best practices. "
            "Focus on: correctness, performance, security, and maintainability."
        ),
    ),
    SubAgentType.TEST_RUNNER: AgentTypeSpec(
        description = "Test runner agent for testing and validation",
        tool_policy = ToolPolicy.FULL_TOOL_SET,
        system_prompt = (
            "You are a test runner agent. Your goal is to design and execute tests, "
            "validate functionality, and report issues. Be thorough in testing edge cases "
            "and providing actionable feedback."
        ),
    ),
})


def description(agent_type: SubAgentType) -> str:
    """Return the one-line purpose of a subagent type."""
    return AGENT_TYPE_REGISTRY[agent_type].description


def system_prompt(agent_type: SubAgentType) -> Optional[str]:
    """Return the fixed role prompt of a subagent type, if it has one."""
    return AGENT_TYPE_REGISTRY[agent_type].system_prompt


def tool_policy(agent_type: SubAgentType) -> ToolPolicy:
    """Return the tool access policy of a subagent type."""
    return AGENT_TYPE_REGISTRY[agent_type].tool_policy


def parse_agent_type(value) -> SubAgentType:
    """
    Resolve a subagent type from user or model supplied text.

    Accepts the wire value ("general-purpose"), the variant name in any
    case ("Plan", "GENERAL_PURPOSE") and underscore/dash variants.

    Parameters:
        value: SubAgentType member or its textual form.
    """
    if isinstance(value, SubAgentType):
        return value

    normalized = str(value or "").strip().lower().replace("_", "-")
    for agent_type in SubAgentType:
        if normalized == agent_type.value:
            return agent_type

    valid = ", ".join(agent_type.value for agent_type in SubAgentType)
    raise InvalidTaskRequest(
        f"Unknown subagent type '{value}'. Valid types are: {valid}"
    )


def get_agent_descriptions() -> str:
    """
    Build a bullet list describing all available agent types.
    """
    return "\n".join(
        f"- {agent_type.value}: {spec.description}"
        for agent_type, spec in AGENT_TYPE_REGISTRY.items()
    )
