"""Async chat completion wrapper for stream and non-stream subagent calls."""

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

import openai

from ..errors import ModelConnectionError, ModelError, ModelTimeoutError, SubagentError
from .runtime_config import DEFAULT_MAX_TOKENS, DEFAULT_TIMEOUT_SECONDS, RuntimeOptions
from .thinking_policy import build_thinking_params

logger = logging.getLogger("Subagent-LLM")

_REASONING_ATTRS = ["reasoning", "reasoning_content", "thinking"]
_REASONING_PART_TYPES = {"reasoning", "thinking"}


@dataclass(frozen = True)
class InvocationOptions:
    """Per-call model name and delivery switches."""

    model_name: str
    stream: bool = False
    reveal_reasoning: bool = False
    reasoning_effort: str = "low"
    thinking_param_style: str = "think"
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_tokens: int = DEFAULT_MAX_TOKENS

    @classmethod
    def from_runtime(
        cls,
        model_name: str,
        runtime_options: RuntimeOptions,
        stream: Optional[bool] = None,
        reveal_reasoning: Optional[bool] = None,
    ) -> "InvocationOptions":
        """Merge runtime options with explicit per-call overrides."""
        return cls(
            model_name = model_name,
            stream = runtime_options.stream if stream is None else bool(stream),
            reveal_reasoning = (
                runtime_options.reveal_reasoning if reveal_reasoning is None else bool(reveal_reasoning)
            ),
            reasoning_effort = runtime_options.reasoning_effort,
            thinking_param_style = runtime_options.thinking_param_style,
            timeout_seconds = runtime_options.timeout_seconds,
            max_tokens = runtime_options.max_tokens,
        )


@dataclass
class LLMCallResult:
    """Normalized result returned by the shared LLM call wrapper."""

    assistant_content: str
    assistant_reasoning: str
    tool_calls: List[Dict[str, Any]] = field(default_factory = list)
    raw_metadata: Dict[str, Any] = field(default_factory = dict)


def build_request(
    messages: List[Dict[str, Any]],
    options: InvocationOptions,
    tools: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """
    Build the outbound chat completion request.

    The "tools" key is only present when a non-empty schema list is given.

    Parameters:
        messages: Role-tagged message list.
        options: Model name and delivery switches.
        tools: OpenAI function-calling schemas, or None.
    """
    request = {
        "model": options.model_name,
        "messages": messages,
        "max_tokens": options.max_tokens,
        "stream": bool(options.stream),
        "timeout": options.timeout_seconds,
    }

    if tools:
        request["tools"] = tools

    thinking_params = build_thinking_params(
        enabled = options.reveal_reasoning,
        param_style = options.thinking_param_style,
        reasoning_effort = options.reasoning_effort,
    )
    if thinking_params:
        request["extra_body"] = thinking_params

    return request


async def call_chat_completion(
    client: Any,
    messages: List[Dict[str, Any]],
    options: InvocationOptions,
    tools: Optional[List[Dict[str, Any]]] = None,
    on_content_chunk: Optional[Callable[[str], None]] = None,
    on_reasoning_chunk: Optional[Callable[[str], None]] = None,
) -> LLMCallResult:
    """
    Call chat completion once and return the complete response.

    Streamed chunks are accumulated in arrival order before returning. The
    whole call, stream included, is bounded by options.timeout_seconds.

    Parameters:
        client: AsyncOpenAI-compatible client.
        messages: Role-tagged message list.
        options: Model name and delivery switches.
        tools: Tool schemas to attach, or None for a tool-less request.
        on_content_chunk: Called with each streamed content fragment.
        on_reasoning_chunk: Called with each streamed reasoning fragment.
    """
    request = build_request(messages = messages, options = options, tools = tools)
    if options.stream:
        invocation = _invoke_stream(
            client = client,
            request = request,
            on_content_chunk = on_content_chunk,
            on_reasoning_chunk = on_reasoning_chunk,
        )
    else:
        invocation = _invoke_once(client = client, request = request)

    try:
        return await asyncio.wait_for(invocation, timeout = options.timeout_seconds)
    except SubagentError:
        raise
    except (asyncio.TimeoutError, TimeoutError, ConnectionError, openai.APIError) as exc:
        raise translate_backend_error(exc, options) from exc


async def iter_chat_chunks(
    client: Any,
    messages: List[Dict[str, Any]],
    options: InvocationOptions,
    tools: Optional[List[Dict[str, Any]]] = None,
) -> AsyncIterator[str]:
    """
    Yield streamed content fragments in arrival order.

    The sequence is finite and forward-only; the backend stream is closed
    when it is exhausted, abandoned or cancelled.

    Parameters:
        client: AsyncOpenAI-compatible client.
        messages: Role-tagged message list.
        options: Model name and delivery switches (stream is forced on).
        tools: Tool schemas to attach, or None.
    """
    request = build_request(messages = messages, options = options, tools = tools)
    request["stream"] = True

    loop = asyncio.get_running_loop()
    deadline = loop.time() + options.timeout_seconds

    try:
        stream_iter = await asyncio.wait_for(
            client.chat.completions.create(**request),
            timeout = options.timeout_seconds,
        )
    except SubagentError:
        raise
    except (asyncio.TimeoutError, TimeoutError, ConnectionError, openai.APIError) as exc:
        raise translate_backend_error(exc, options) from exc

    iterator = stream_iter.__aiter__()
    try:
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise ModelTimeoutError(
                    f"No complete response from '{options.model_name}' "
                    f"within {options.timeout_seconds:g}s."
                )
            try:
                chunk = await asyncio.wait_for(iterator.__anext__(), timeout = remaining)
            except StopAsyncIteration:
                break
            except SubagentError:
                raise
            except (asyncio.TimeoutError, TimeoutError, ConnectionError, openai.APIError) as exc:
                raise translate_backend_error(exc, options) from exc

            delta = _first_delta(chunk)
            if delta is None:
                continue
            piece = _extract_content_from_delta(delta)
            if piece:
                yield piece
    finally:
        await _close_stream(stream_iter)


def translate_backend_error(exc: BaseException, options: InvocationOptions) -> SubagentError:
    """Map SDK/transport exceptions onto the subagent error taxonomy."""
    # Timeouts first: the SDK's APITimeoutError is also an APIConnectionError.
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError, openai.APITimeoutError)):
        return ModelTimeoutError(
            f"No complete response from '{options.model_name}' "
            f"within {options.timeout_seconds:g}s."
        )

    if isinstance(exc, (openai.APIConnectionError, ConnectionError)):
        return ModelConnectionError(f"Model backend unreachable: {exc}")

    if isinstance(exc, openai.APIStatusError):
        detail = exc.body if exc.body is not None else exc.message
        return ModelError(
            f"Model backend returned HTTP {exc.status_code}: {exc.message}",
            status_code = exc.status_code,
            detail = str(detail),
        )

    return ModelError(f"Model backend error: {exc}", detail = str(exc))


async def _invoke_once(client: Any, request: Dict[str, Any]) -> LLMCallResult:
    """Single non-stream API call."""
    response = await client.chat.completions.create(**request)

    choices = getattr(response, "choices", None)
    if not choices:
        raise ModelError("Model backend returned no choices.", detail = str(_safe_model_dump(response)))

    message = getattr(choices[0], "message", None)
    if message is None:
        raise ModelError("Model backend returned a choice without a message.")

    return LLMCallResult(
        assistant_content = _coerce_text(getattr(message, "content", "")),
        assistant_reasoning = _extract_reasoning(message),
        tool_calls = _normalize_tool_calls(getattr(message, "tool_calls", None)),
        raw_metadata = {
            "stream": False,
            "response_id": getattr(response, "id", None),
            "model": getattr(response, "model", None),
            "usage": _safe_model_dump(getattr(response, "usage", None)),
        },
    )


async def _invoke_stream(
    client: Any,
    request: Dict[str, Any],
    on_content_chunk: Optional[Callable[[str], None]],
    on_reasoning_chunk: Optional[Callable[[str], None]],
) -> LLMCallResult:
    """Streaming API path with tool-call assembly and optional callbacks."""
    content_parts: List[str] = []
    reasoning_parts: List[str] = []
    tool_buffers: Dict[int, Dict[str, Any]] = {}

    last_id = None
    last_model = None
    chunk_count = 0

    stream_iter = await client.chat.completions.create(**request)
    try:
        async for chunk in stream_iter:
            chunk_count += 1
            last_id = getattr(chunk, "id", last_id)
            last_model = getattr(chunk, "model", last_model)

            delta = _first_delta(chunk)
            if delta is None:
                continue

            content_piece = _extract_content_from_delta(delta)
            if content_piece:
                content_parts.append(content_piece)
                if on_content_chunk:
                    on_content_chunk(content_piece)

            reasoning_piece = _extract_reasoning(delta)
            if reasoning_piece:
                reasoning_parts.append(reasoning_piece)
                if on_reasoning_chunk:
                    on_reasoning_chunk(reasoning_piece)

            delta_tool_calls = getattr(delta, "tool_calls", None)
            if delta_tool_calls:
                _merge_stream_tool_calls(tool_buffers = tool_buffers, delta_tool_calls = delta_tool_calls)
    finally:
        await _close_stream(stream_iter)

    logger.debug(f"Stream finished after {chunk_count} chunks (id={last_id})")

    return LLMCallResult(
        assistant_content = "".join(content_parts),
        assistant_reasoning = "".join(reasoning_parts),
        tool_calls = [tool_buffers[index] for index in sorted(tool_buffers.keys())],
        raw_metadata = {
            "stream": True,
            "chunk_count": chunk_count,
            "response_id": last_id,
            "model": last_model,
        },
    )


async def _close_stream(stream_iter: Any) -> None:
    """Release the backend stream handle if it exposes close/aclose."""
    for attr_name in ["close", "aclose"]:
        closer = getattr(stream_iter, attr_name, None)
        if callable(closer):
            result = closer()
            if inspect.isawaitable(result):
                await result
            return


def _first_delta(chunk: Any) -> Any:
    """Return the first choice delta of a stream chunk, if any."""
    choices = getattr(chunk, "choices", None) or []
    if not choices:
        return None
    return getattr(choices[0], "delta", None)


def _extract_reasoning(payload: Any) -> str:
    """Extract reasoning text from a message or a stream delta."""
    segments = []
    for attr_name in _REASONING_ATTRS:
        raw = getattr(payload, attr_name, None)
        if raw:
            segments.append(_coerce_text(raw))

    # Some providers embed typed blocks inside content arrays.
    content = getattr(payload, "content", None)
    if isinstance(content, list):
        for part in content:
            if _read_obj(part, "type") in _REASONING_PART_TYPES:
                segments.append(_coerce_text(_read_obj(part, "text") or _read_obj(part, "content")))

    return "".join(segment for segment in segments if segment)


def _extract_content_from_delta(delta: Any) -> str:
    """Extract streamed assistant content, skipping typed reasoning blocks."""
    content = getattr(delta, "content", None)
    if isinstance(content, list):
        return "".join(
            _coerce_text(_read_obj(part, "text") or _read_obj(part, "content"))
            for part in content
            if _read_obj(part, "type") not in _REASONING_PART_TYPES
        )

    return _coerce_text(content)


def _normalize_tool_calls(tool_calls: Any) -> List[Dict[str, Any]]:
    """Normalize tool call objects to plain dicts."""
    normalized = []
    for tool_call in tool_calls or []:
        function_payload = _read_obj(tool_call, "function") or {}
        normalized.append(
            {
                "id": _read_obj(tool_call, "id"),
                "type": _read_obj(tool_call, "type") or "function",
                "function": {
                    "name": _read_obj(function_payload, "name") or "",
                    "arguments": _read_obj(function_payload, "arguments") or "{}",
                },
            }
        )
    return normalized


def _merge_stream_tool_calls(tool_buffers: Dict[int, Dict[str, Any]], delta_tool_calls: Any) -> None:
    """Merge incremental stream tool-call chunks by index."""
    for delta_tool_call in delta_tool_calls:
        raw_index = _read_obj(delta_tool_call, "index")
        index = int(raw_index) if raw_index is not None else len(tool_buffers)

        buffer = tool_buffers.setdefault(
            index,
            {
                "id": f"call_{index}",
                "type": _read_obj(delta_tool_call, "type") or "function",
                "function": {"name": "", "arguments": ""},
            },
        )

        tool_id = _read_obj(delta_tool_call, "id")
        if tool_id:
            buffer["id"] = tool_id

        function_payload = _read_obj(delta_tool_call, "function")
        if not function_payload:
            continue

        name_piece = _read_obj(function_payload, "name")
        if name_piece and not buffer["function"]["name"].endswith(name_piece):
            buffer["function"]["name"] += name_piece

        args_piece = _read_obj(function_payload, "arguments")
        if args_piece:
            buffer["function"]["arguments"] += args_piece


def _coerce_text(value: Any) -> str:
    """Flatten value to text conservatively."""
    if value is None:
        return ""

    if isinstance(value, str):
        return value

    if isinstance(value, list):
        return "".join(_coerce_text(item) for item in value)

    if isinstance(value, dict):
        for key in ["text", "content", "reasoning"]:
            if key in value:
                return _coerce_text(value.get(key))
        return ""

    for attr_name in ["text", "content", "reasoning"]:
        attr_value = getattr(value, attr_name, None)
        if attr_value is not None:
            return _coerce_text(attr_value)

    return str(value)


def _read_obj(obj: Any, key: str) -> Any:
    """Read key from object or dict safely."""
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def _safe_model_dump(obj: Any) -> Any:
    """Best-effort conversion of SDK objects to plain dicts."""
    if obj is None or isinstance(obj, dict):
        return obj

    model_dump = getattr(obj, "model_dump", None)
    if callable(model_dump):
        return model_dump()

    return str(obj)
