"""Subagent task executor: policy resolution, model invocation and report."""

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Sequence, Union

from openai import AsyncOpenAI

from .agent_types import SubAgentType, ToolPolicy, description, parse_agent_type, tool_policy
from .errors import InvalidTaskRequest, SubagentError
from .formatter import format_task_result
from .prompts import compose_messages
from .utils.llm_call import InvocationOptions, call_chat_completion, iter_chat_chunks
from .utils.runtime_config import ModelSettings, RuntimeOptions, load_model_settings, runtime_options_from_args
from .utils.trace_logger import TaskTraceLogger

logger = logging.getLogger("Subagent-Executor")

AgentTypeLike = Union[SubAgentType, str]


@dataclass(frozen = True)
class TaskRequest:
    """One subagent invocation requested by the host agent."""

    subagent_type: SubAgentType
    task_name: str
    task_description: str

    @classmethod
    def create(cls, subagent_type: AgentTypeLike, task_name: str, task_description: str) -> "TaskRequest":
        """Build and validate a request; raises InvalidTaskRequest."""
        request = cls(
            subagent_type = parse_agent_type(subagent_type),
            task_name = task_name,
            task_description = task_description,
        )
        request.validate()
        return request

    def validate(self) -> None:
        """Reject empty task name or description before any network call."""
        if not isinstance(self.task_name, str) or not self.task_name.strip():
            raise InvalidTaskRequest("Task requires a non-empty task_name.")
        if not isinstance(self.task_description, str) or not self.task_description.strip():
            raise InvalidTaskRequest("Task requires a non-empty task_description.")


class TaskResult(str):
    """
    Formatted task report.

    The value itself is the formatted envelope, so hosts can treat the
    result as plain text; the raw model output and call metadata ride along
    as attributes.
    """

    def __new__(
        cls,
        formatted_output: str,
        raw_model_output: str,
        task_name: str = "",
        agent_type: Optional[SubAgentType] = None,
        model: str = "",
        tools_enabled: bool = False,
        tool_calls: Optional[List[Dict[str, Any]]] = None,
        reasoning: str = "",
        duration_seconds: float = 0.0,
    ):
        instance = super().__new__(cls, formatted_output)
        instance.raw_model_output = raw_model_output
        instance.task_name = task_name
        instance.agent_type = agent_type
        instance.model = model
        instance.tools_enabled = tools_enabled
        instance.tool_calls = list(tool_calls or [])
        instance.reasoning = reasoning
        instance.duration_seconds = duration_seconds
        return instance

    @property
    def formatted_output(self) -> str:
        return str.__str__(self)

    def __reduce__(self):
        return (
            TaskResult,
            (
                self.formatted_output,
                self.raw_model_output,
                self.task_name,
                self.agent_type,
                self.model,
                self.tools_enabled,
                self.tool_calls,
                self.reasoning,
                self.duration_seconds,
            ),
        )


def build_client(settings: ModelSettings) -> AsyncOpenAI:
    """
    Create the backend client for subagent calls.

    SDK-level retries are disabled: a failed call surfaces immediately and
    retry policy belongs to the caller.
    """
    return AsyncOpenAI(
        base_url = settings.base_url,
        api_key = settings.api_key,
        max_retries = 0,
    )


class SubagentExecutor:
    """Runs typed subagent tasks against a shared, read-only backend client."""

    def __init__(
        self,
        client: Any,
        settings: ModelSettings,
        runtime_options: Optional[RuntimeOptions] = None,
        tool_schemas: Optional[Sequence[Dict[str, Any]]] = None,
        trace_logger: Optional[TaskTraceLogger] = None,
    ):
        self.client = client
        self.settings = settings
        self.runtime_options = runtime_options or RuntimeOptions()
        self.tool_schemas = tuple(tool_schemas or ())
        self.tracer = trace_logger or TaskTraceLogger(enabled = self.runtime_options.show_llm_response)

    def tools_for(self, agent_type: SubAgentType) -> Optional[List[Dict[str, Any]]]:
        """
        Return the tool schemas a subagent type may see.

        NoTools types get None, so no tool schema ever reaches the request.

        Parameters:
            agent_type: Subagent type being spawned.
        """
        if tool_policy(agent_type) is ToolPolicy.NO_TOOLS:
            return None
        return list(self.tool_schemas) or None

    def invocation_options(
        self,
        model: Optional[str] = None,
        stream: Optional[bool] = None,
        reveal_reasoning: Optional[bool] = None,
    ) -> InvocationOptions:
        """Resolve model name and delivery switches for one call."""
        return InvocationOptions.from_runtime(
            model_name = model or self.settings.model,
            runtime_options = self.runtime_options,
            stream = stream,
            reveal_reasoning = reveal_reasoning,
        )

    async def spawn_task(
        self,
        agent_type: AgentTypeLike,
        task_name: str,
        task_description: str,
        model: Optional[str] = None,
        stream: Optional[bool] = None,
        reveal_reasoning: Optional[bool] = None,
        on_content_chunk: Optional[Callable[[str], None]] = None,
    ) -> TaskResult:
        """
        Spawn one subagent in an isolated conversation and return its report.

        Parameters:
            agent_type: Subagent type (member or textual form).
            task_name: Short label for logs and the result metadata.
            task_description: Task text sent to the subagent.
            model: Model override, defaults to the configured model.
            stream: Streaming override, defaults to runtime options.
            reveal_reasoning: Reasoning trace override, defaults to runtime options.
            on_content_chunk: Called with each content fragment in stream mode.
        """
        request = TaskRequest.create(agent_type, task_name, task_description)
        return await self.run_request(
            request,
            model = model,
            stream = stream,
            reveal_reasoning = reveal_reasoning,
            on_content_chunk = on_content_chunk,
        )

    async def run_request(
        self,
        request: TaskRequest,
        model: Optional[str] = None,
        stream: Optional[bool] = None,
        reveal_reasoning: Optional[bool] = None,
        on_content_chunk: Optional[Callable[[str], None]] = None,
    ) -> TaskResult:
        """Run an already validated request; see spawn_task for the switches."""
        subagent_type = request.subagent_type
        policy = tool_policy(subagent_type)
        tools = self.tools_for(subagent_type)
        messages = compose_messages(subagent_type, request.task_description)
        options = self.invocation_options(model = model, stream = stream, reveal_reasoning = reveal_reasoning)

        logger.info(f"[{subagent_type.value}] {request.task_name} (model={options.model_name}, tools={policy.value})")
        start_time = time.monotonic()

        try:
            result = await call_chat_completion(
                client = self.client,
                messages = messages,
                options = options,
                tools = tools,
                on_content_chunk = on_content_chunk,
            )
        except SubagentError as exc:
            logger.error(f"[{subagent_type.value}] {request.task_name} - failed: {type(exc).__name__}: {exc}")
            raise

        tool_calls = result.tool_calls
        if policy is ToolPolicy.NO_TOOLS and tool_calls:
            logger.warning(
                f"[{subagent_type.value}] ignoring {len(tool_calls)} tool call(s) from a tool-less task"
            )
            tool_calls = []

        elapsed = time.monotonic() - start_time
        rendered_reasoning = result.assistant_reasoning if options.reveal_reasoning else ""
        self.tracer.log_task(
            agent_type = subagent_type.value,
            task_name = request.task_name,
            raw_output = result.assistant_content,
            tool_calls = tool_calls,
            reasoning = rendered_reasoning,
            duration_seconds = elapsed,
        )
        response_id = result.raw_metadata.get("response_id")
        logger.info(
            f"[{subagent_type.value}] {request.task_name} - done ({elapsed:.1f}s, "
            f"provider={self.settings.provider}, response_id={response_id})"
        )

        raw_output = result.assistant_content
        return TaskResult(
            format_task_result(
                task_title = request.task_description,
                type_description = description(subagent_type),
                model_name = options.model_name,
                raw_output = raw_output,
            ),
            raw_model_output = raw_output,
            task_name = request.task_name,
            agent_type = subagent_type,
            model = options.model_name,
            tools_enabled = policy is ToolPolicy.FULL_TOOL_SET,
            tool_calls = tool_calls,
            reasoning = rendered_reasoning,
            duration_seconds = elapsed,
        )

    async def spawn_multiple_tasks(self, requests: Sequence[TaskRequest]) -> List[TaskResult]:
        """
        Run several subagent tasks concurrently, results in request order.

        Every request is validated before any call starts. The first failure
        cancels the remaining tasks and propagates.

        Parameters:
            requests: Task requests to run.
        """
        for request in requests:
            request.validate()

        logger.info(f"Spawning {len(requests)} subagent tasks concurrently")
        start_time = time.monotonic()

        tasks = [
            asyncio.ensure_future(
                self.spawn_task(
                    agent_type = request.subagent_type,
                    task_name = request.task_name,
                    task_description = request.task_description,
                )
            )
            for request in requests
        ]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions = True)
            raise

        logger.info(f"All {len(results)} subagent tasks completed in {time.monotonic() - start_time:.2f}s")
        return list(results)

    async def iter_task_output(
        self,
        agent_type: AgentTypeLike,
        task_name: str,
        task_description: str,
        model: Optional[str] = None,
        reveal_reasoning: Optional[bool] = None,
    ) -> AsyncIterator[str]:
        """
        Stream raw content fragments of one subagent task (no envelope).

        Parameters:
            agent_type: Subagent type (member or textual form).
            task_name: Short label for logs.
            task_description: Task text sent to the subagent.
            model: Model override, defaults to the configured model.
            reveal_reasoning: Reasoning trace override.
        """
        request = TaskRequest.create(agent_type, task_name, task_description)
        subagent_type = request.subagent_type
        options = self.invocation_options(model = model, stream = True, reveal_reasoning = reveal_reasoning)

        logger.info(f"[{subagent_type.value}] {request.task_name} (streaming, model={options.model_name})")
        async for fragment in iter_chat_chunks(
            client = self.client,
            messages = compose_messages(subagent_type, request.task_description),
            options = options,
            tools = self.tools_for(subagent_type),
        ):
            yield fragment


async def spawn_task(
    agent_type: AgentTypeLike,
    task_name: str,
    task_description: str,
    settings_path: Optional[Path] = None,
    runtime_options: Optional[RuntimeOptions] = None,
    tool_schemas: Optional[Sequence[Dict[str, Any]]] = None,
    model: Optional[str] = None,
    client_factory: Callable[[ModelSettings], Any] = build_client,
) -> TaskResult:
    """
    Run one subagent task with settings loaded from file/env.

    Parameters:
        agent_type: Subagent type (member or textual form).
        task_name: Short label for logs.
        task_description: Task text sent to the subagent.
        settings_path: Optional JSON settings file.
        runtime_options: Runtime switches, defaults to environment values.
        tool_schemas: Host tool registry for full-tool types.
        model: Model override.
        client_factory: Builds the backend client from settings.
    """
    # Invalid input fails before settings are read or a client is built.
    request = TaskRequest.create(agent_type, task_name, task_description)

    settings = load_model_settings(settings_path)
    options = runtime_options or runtime_options_from_args()
    async with client_factory(settings) as client:
        executor = SubagentExecutor(
            client = client,
            settings = settings,
            runtime_options = options,
            tool_schemas = tool_schemas,
        )
        return await executor.run_request(request, model = model)
