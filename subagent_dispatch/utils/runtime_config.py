"""Runtime option parsing and model backend settings for subagent tasks."""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv


BOOL_TRUE = {"1", "true", "yes", "y", "on"}
BOOL_FALSE = {"0", "false", "no", "n", "off"}

DEFAULT_SETTINGS_PATH = Path(".subagents") / "settings.json"
DEFAULT_BASE = "http://127.0.0.1:11434"
DEFAULT_MODEL = "qwen3"
DEFAULT_API_KEY = "ollama"
DEFAULT_TIMEOUT_SECONDS = 120.0
DEFAULT_MAX_TOKENS = 8192


@dataclass(frozen = True)
class ModelSettings:
    """Connection settings for the chat completion backend."""

    base_url: str = f"{DEFAULT_BASE}/v1"
    api_key: str = DEFAULT_API_KEY
    model: str = DEFAULT_MODEL
    provider: str = "ollama"


@dataclass(frozen = True)
class RuntimeOptions:
    """Runtime feature switches merged from CLI and environment variables."""

    stream: bool = False
    thinking_mode: str = "off"
    reasoning_effort: str = "low"
    thinking_param_style: str = "think"
    show_llm_response: bool = False
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_tokens: int = DEFAULT_MAX_TOKENS

    @property
    def reveal_reasoning(self) -> bool:
        return self.thinking_mode == "on"

    def as_dict(self) -> dict:
        """Return JSON-serializable dict form for log metadata."""
        return {
            "stream": self.stream,
            "thinking_mode": self.thinking_mode,
            "reasoning_effort": self.reasoning_effort,
            "thinking_param_style": self.thinking_param_style,
            "show_llm_response": self.show_llm_response,
            "timeout_seconds": self.timeout_seconds,
            "max_tokens": self.max_tokens,
        }


def load_model_settings(settings_path: Optional[Path] = None) -> ModelSettings:
    """
    Load backend settings with ENV > settings file > default precedence.

    The settings file is JSON with optional "provider", "base" and "model"
    keys. A missing file is not an error; an unreadable one is.

    Parameters:
        settings_path: JSON settings file, defaults to .subagents/settings.json.
    """
    load_dotenv()

    path = Path(settings_path) if settings_path else DEFAULT_SETTINGS_PATH
    file_settings: Dict[str, Any] = {}
    if path.exists():
        with path.open("r", encoding = "utf-8") as file:
            try:
                file_settings = json.load(file)
            except json.JSONDecodeError as exc:
                raise ValueError(f"Failed to parse settings file {path}: {exc}") from exc
        if not isinstance(file_settings, dict):
            raise ValueError(f"Settings file {path} must contain a JSON object.")

    base = str(file_settings.get("base") or DEFAULT_BASE).rstrip("/")
    base_url = _resolve_str(
        cli_value = None,
        env_name = "LLM_BASE_URL",
        default = base if base.endswith("/v1") else f"{base}/v1",
    )

    return ModelSettings(
        base_url = base_url,
        api_key = _resolve_str(cli_value = None, env_name = "LLM_API_KEY", default = DEFAULT_API_KEY),
        model = _resolve_str(
            cli_value = None,
            env_name = "LLM_MODEL",
            default = str(file_settings.get("model") or DEFAULT_MODEL),
        ),
        provider = str(file_settings.get("provider") or "ollama"),
    )


def add_runtime_args(parser: Any) -> None:
    """Attach shared runtime flags to an argparse parser."""
    import argparse

    parser.add_argument(
        "--stream",
        dest = "stream",
        action = argparse.BooleanOptionalAction,
        default = None,
        help = "Stream the model response as it is generated.",
    )
    parser.add_argument(
        "--thinking",
        dest = "thinking",
        choices = ["on", "off"],
        default = None,
        help = "Request the model's reasoning trace.",
    )
    parser.add_argument(
        "--reasoning-effort",
        dest = "reasoning_effort",
        choices = ["none", "low", "medium", "high"],
        default = None,
        help = "Requested reasoning effort level.",
    )
    parser.add_argument(
        "--thinking-param-style",
        dest = "thinking_param_style",
        choices = sorted(["think", "enable_thinking", "reasoning_effort", "both", "none"]),
        default = None,
        help = "How the reasoning toggle is sent to the backend.",
    )
    parser.add_argument(
        "--show-llm-response",
        dest = "show_llm_response",
        action = argparse.BooleanOptionalAction,
        default = None,
        help = "Log assistant/tool/reasoning previews for each task.",
    )
    parser.add_argument(
        "--timeout",
        dest = "timeout_seconds",
        type = float,
        default = None,
        help = f"Seconds to wait for a complete response (default: {DEFAULT_TIMEOUT_SECONDS:g}).",
    )
    parser.add_argument(
        "--max-tokens",
        dest = "max_tokens",
        type = int,
        default = None,
        help = f"Completion token limit (default: {DEFAULT_MAX_TOKENS}).",
    )


def runtime_options_from_args(args: Any = None) -> RuntimeOptions:
    """Build runtime options with CLI > ENV > default precedence."""
    stream = _resolve_bool(
        cli_value = getattr(args, "stream", None),
        env_name = "AGENT_STREAM",
        default = False,
    )
    thinking_mode = _resolve_enum(
        cli_value = getattr(args, "thinking", None),
        env_name = "AGENT_THINKING_MODE",
        default = "off",
        allowed = {"on", "off"},
    )
    reasoning_effort = _resolve_enum(
        cli_value = getattr(args, "reasoning_effort", None),
        env_name = "AGENT_REASONING_EFFORT",
        default = "low",
        allowed = {"none", "low", "medium", "high"},
    )
    thinking_param_style = _resolve_enum(
        cli_value = getattr(args, "thinking_param_style", None),
        env_name = "AGENT_THINKING_PARAM_STYLE",
        default = "think",
        allowed = {"think", "enable_thinking", "reasoning_effort", "both", "none"},
    )
    show_llm_response = _resolve_bool(
        cli_value = getattr(args, "show_llm_response", None),
        env_name = "AGENT_SHOW_LLM_RESPONSE",
        default = False,
    )
    timeout_seconds = _resolve_float(
        cli_value = getattr(args, "timeout_seconds", None),
        env_name = "AGENT_TIMEOUT_SECONDS",
        default = DEFAULT_TIMEOUT_SECONDS,
    )
    max_tokens = _resolve_int(
        cli_value = getattr(args, "max_tokens", None),
        env_name = "AGENT_MAX_TOKENS",
        default = DEFAULT_MAX_TOKENS,
    )

    return RuntimeOptions(
        stream = stream,
        thinking_mode = thinking_mode,
        reasoning_effort = reasoning_effort,
        thinking_param_style = thinking_param_style,
        show_llm_response = show_llm_response,
        timeout_seconds = timeout_seconds if timeout_seconds > 0 else DEFAULT_TIMEOUT_SECONDS,
        max_tokens = max_tokens if max_tokens > 0 else DEFAULT_MAX_TOKENS,
    )


def _resolve_bool(cli_value: Any, env_name: str, default: bool) -> bool:
    """Resolve bool with CLI > ENV > default precedence."""
    if cli_value is not None:
        return bool(cli_value)

    raw_env = os.getenv(env_name)
    if raw_env is None:
        return default

    normalized = raw_env.strip().lower()
    if normalized in BOOL_TRUE:
        return True
    if normalized in BOOL_FALSE:
        return False
    return default


def _resolve_enum(cli_value: Any, env_name: str, default: str, allowed: set) -> str:
    """Resolve enum option with validation."""
    if cli_value is not None and str(cli_value) in allowed:
        return str(cli_value)

    raw_env = os.getenv(env_name)
    if raw_env is not None:
        normalized = raw_env.strip().lower()
        if normalized in allowed:
            return normalized

    return default


def _resolve_int(cli_value: Any, env_name: str, default: int) -> int:
    """Resolve int option with fallback to default on parse failure."""
    if cli_value is not None:
        return int(cli_value)

    raw_env = os.getenv(env_name)
    if raw_env is None:
        return default

    try:
        return int(raw_env.strip())
    except ValueError:
        return default


def _resolve_float(cli_value: Any, env_name: str, default: float) -> float:
    """Resolve float option with fallback to default on parse failure."""
    if cli_value is not None:
        return float(cli_value)

    raw_env = os.getenv(env_name)
    if raw_env is None:
        return default

    try:
        return float(raw_env.strip())
    except ValueError:
        return default


def _resolve_str(cli_value: Any, env_name: str, default: str) -> str:
    """Resolve string option with CLI > ENV > default precedence."""
    if cli_value is not None and str(cli_value).strip():
        return str(cli_value)

    raw_env = os.getenv(env_name)
    if raw_env is not None and raw_env.strip():
        return raw_env.strip()

    return default
