"""Task tool schema and argument handling for a host agent's tool loop."""

import json
import logging
from typing import Any, Dict, Union

from .agent_types import SubAgentType, get_agent_descriptions
from .errors import InvalidTaskRequest
from .executor import SubagentExecutor, TaskResult

logger = logging.getLogger("Subagent-TaskTool")

TASK_TOOL_NAME = "task"

TASK_TOOL = {
    "type": "function",
    "function": {
        "name": TASK_TOOL_NAME,
        "description": f"""Launch a specialized subagent to handle a focused task in an isolated context.

Agent types:
{get_agent_descriptions()}""",
        "parameters": {
            "type": "object",
            "properties": {
                "subagent_type": {
                    "type": "string",
                    "description": "The type of subagent to launch",
                    "enum": [agent_type.value for agent_type in SubAgentType],
                },
                "description": {
                    "type": "string",
                    "description": "A short description (3-5 words) of what the agent will do",
                },
                "prompt": {
                    "type": "string",
                    "description": "The detailed task for the agent to perform",
                },
                "model": {
                    "type": "string",
                    "description": "Optional model to use (defaults to the configured model)",
                },
            },
            "required": ["subagent_type", "description", "prompt"],
        },
    },
}


def parse_tool_args(arguments: Union[str, Dict[str, Any], None]) -> Dict[str, Any]:
    """
    Parse task tool arguments from a function-call payload.

    Parameters:
        arguments: JSON string or already-decoded dict.
    """
    if isinstance(arguments, dict):
        return arguments
    if not arguments:
        return {}

    try:
        parsed = json.loads(arguments)
    except json.JSONDecodeError:
        cleaned = "".join(ch for ch in arguments if ch >= " " or ch in "\t\n\r")
        try:
            parsed = json.loads(cleaned, strict = False)
        except json.JSONDecodeError as exc:
            raise InvalidTaskRequest(f"Failed to parse task arguments: {exc}") from exc

    if not isinstance(parsed, dict):
        raise InvalidTaskRequest("Task arguments must be a JSON object.")
    return parsed


async def run_task_tool(
    executor: SubagentExecutor,
    arguments: Union[str, Dict[str, Any], None],
) -> TaskResult:
    """
    Execute one task tool call through the executor.

    Parameters:
        executor: Executor bound to the host's backend client.
        arguments: Raw tool-call arguments.
    """
    args = parse_tool_args(arguments)

    for key in ["subagent_type", "prompt", "description"]:
        value = args.get(key)
        if not isinstance(value, str) or not value.strip():
            raise InvalidTaskRequest(f"Missing '{key}' argument")

    model = args.get("model")
    if model is not None and (not isinstance(model, str) or not model.strip()):
        model = None

    logger.info(f"Task tool call: {args['subagent_type']} - {args['description']}")
    return await executor.spawn_task(
        agent_type = args["subagent_type"],
        task_name = args["description"].strip(),
        task_description = args["prompt"],
        model = model.strip() if model else None,
    )
