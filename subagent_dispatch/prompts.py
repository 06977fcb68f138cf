"""Message list composition for a fresh, isolated subagent conversation."""

from typing import Dict, List

from .agent_types import SubAgentType, system_prompt


def compose_messages(agent_type: SubAgentType, task_description: str) -> List[Dict[str, str]]:
    """
    Build the opening message list for one subagent task.

    The list never carries the spawning agent's history: a role prompt
    (when the type defines one) followed by the task text as-is.

    Parameters:
        agent_type: Subagent type being spawned.
        task_description: Full task text handed to the subagent.
    """
    messages = []

    role_prompt = system_prompt(agent_type)
    if role_prompt is not None:
        messages.append({"role": "system", "content": role_prompt})

    messages.append({"role": "user", "content": task_description})
    return messages
