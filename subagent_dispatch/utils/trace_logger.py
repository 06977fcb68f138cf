"""Per-task trace of subagent replies, enabled by the show-llm-response switch."""

import json
import logging
from typing import Any, Dict, List, Optional


class TaskTraceLogger:
    """Logs a compact view of what each subagent returned."""

    def __init__(self, enabled: bool, logger: Optional[logging.Logger] = None):
        self.enabled = bool(enabled)
        self.logger = logger or logging.getLogger("Subagent-Trace")

    def log_task(
        self,
        agent_type: str,
        task_name: str,
        raw_output: str,
        tool_calls: Optional[List[Dict[str, Any]]] = None,
        reasoning: str = "",
        duration_seconds: float = 0.0,
    ) -> None:
        """
        Log output preview, requested tool calls and reasoning for one task.

        Parameters:
            agent_type: Subagent type value, e.g. "plan".
            task_name: Short task label.
            raw_output: Model output before formatting.
            tool_calls: Normalized tool calls kept on the result.
            reasoning: Reasoning trace, empty when not revealed.
            duration_seconds: Wall time of the model call.
        """
        if not self.enabled:
            return

        prefix = f"[trace:{agent_type}] {task_name}"
        output = raw_output or ""
        self.logger.info(
            f"{prefix} output ({len(output)} chars, {duration_seconds:.1f}s): "
            f"{_preview(output, 400) or '(empty)'}"
        )

        for tool_call in tool_calls or []:
            self.logger.info(f"{prefix} tool call: {_describe_tool_call(tool_call)}")

        if reasoning:
            self.logger.info(f"{prefix} reasoning: {_preview(reasoning, 200)}")


def _describe_tool_call(tool_call: Dict[str, Any]) -> str:
    """Render one tool call as name(arguments)."""
    function_block = tool_call.get("function") or {}
    name = function_block.get("name") or "unknown"
    arguments = function_block.get("arguments") or "{}"

    try:
        arguments = json.dumps(json.loads(arguments), ensure_ascii = False)
    except (TypeError, ValueError):
        arguments = str(arguments)

    return f"{name}({_preview(arguments, 160)})"


def _preview(text: str, limit: int) -> str:
    single_line = text.replace("\n", "\\n").strip()
    if len(single_line) > limit:
        return single_line[:limit] + "..."
    return single_line
