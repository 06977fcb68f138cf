"""Reasoning ("think") toggle translation into provider request parameters."""

from typing import Any, Dict


ALLOWED_PARAM_STYLES = {"think", "enable_thinking", "reasoning_effort", "both", "none"}
ALLOWED_REASONING_EFFORT = {"none", "low", "medium", "high"}


def build_thinking_params(
    enabled: bool,
    param_style: str = "think",
    reasoning_effort: str = "low",
) -> Dict[str, Any]:
    """Build backend params for the requested reasoning trace state."""
    style = (param_style or "think").strip().lower()
    effort = (reasoning_effort or "low").strip().lower()

    if style not in ALLOWED_PARAM_STYLES:
        style = "think"
    if effort not in ALLOWED_REASONING_EFFORT:
        effort = "low"

    if style == "think":
        return {"think": bool(enabled)}

    if style == "enable_thinking":
        return {"enable_thinking": bool(enabled)}

    if style == "reasoning_effort":
        return {"reasoning_effort": effort if enabled else "none"}

    if style == "both":
        return {
            "enable_thinking": bool(enabled),
            "reasoning_effort": effort if enabled else "none",
        }

    return {}
