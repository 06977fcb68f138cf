"""Shared runtime utilities for subagent task execution."""

from .runtime_config import (
    ModelSettings,
    RuntimeOptions,
    add_runtime_args,
    load_model_settings,
    runtime_options_from_args,
)
from .thinking_policy import build_thinking_params
from .llm_call import (
    InvocationOptions,
    LLMCallResult,
    build_request,
    call_chat_completion,
    iter_chat_chunks,
)
from .trace_logger import TaskTraceLogger

__all__ = [
    "ModelSettings",
    "RuntimeOptions",
    "add_runtime_args",
    "load_model_settings",
    "runtime_options_from_args",
    "build_thinking_params",
    "InvocationOptions",
    "LLMCallResult",
    "build_request",
    "call_chat_completion",
    "iter_chat_chunks",
    "TaskTraceLogger",
]
