"""Command line entrypoint: run one subagent task and print its report."""

import argparse
import asyncio
import logging
import sys
from typing import Any, Callable, List, Optional, TextIO

from .agent_types import SubAgentType, get_agent_descriptions
from .errors import SubagentError
from .executor import SubagentExecutor, build_client
from .utils.runtime_config import (
    ModelSettings,
    RuntimeOptions,
    add_runtime_args,
    load_model_settings,
    runtime_options_from_args,
)
from .utils.trace_logger import TaskTraceLogger

logger = logging.getLogger("Subagent-CLI")


def parse_args(argv: Optional[List[str]] = None):
    """
    Parse command line arguments.

    Parameters:
        argv: Argument list, defaults to sys.argv[1:].
    """
    parser = argparse.ArgumentParser(
        description = "Spawn a typed subagent task.",
        epilog = f"Agent types:\n{get_agent_descriptions()}",
        formatter_class = argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "prompt",
        help = "Task description sent to the subagent.",
    )
    parser.add_argument(
        "--type",
        dest = "agent_type",
        choices = [agent_type.value for agent_type in SubAgentType],
        default = SubAgentType.GENERAL_PURPOSE.value,
        help = "Subagent type (default: general-purpose).",
    )
    parser.add_argument(
        "--name",
        dest = "task_name",
        default = None,
        help = "Short task label for logs (default: first words of the prompt).",
    )
    parser.add_argument(
        "--model",
        dest = "model",
        default = None,
        help = "Model override (default: configured model).",
    )
    parser.add_argument(
        "--settings",
        dest = "settings_path",
        default = None,
        help = "JSON settings file (default: .subagents/settings.json).",
    )
    add_runtime_args(parser)

    args = parser.parse_args(argv)
    args.runtime_options = runtime_options_from_args(args)
    if not args.task_name:
        args.task_name = " ".join(args.prompt.split()[:5])
    return args


async def run(
    args,
    client_factory: Callable[[ModelSettings], Any] = build_client,
    output_stream: Optional[TextIO] = None,
) -> Optional[str]:
    """
    Run the requested task.

    In stream mode the raw fragments are written as they arrive and None is
    returned; otherwise the formatted report is returned for printing.

    Parameters:
        args: Namespace from parse_args.
        client_factory: Builds the backend client from settings.
        output_stream: Destination for streamed fragments, defaults to stdout.
    """
    out = output_stream or sys.stdout
    settings = load_model_settings(args.settings_path)
    runtime_options: RuntimeOptions = args.runtime_options
    tracer = TaskTraceLogger(enabled = runtime_options.show_llm_response, logger = logger)

    def _on_content_chunk(chunk: str) -> None:
        out.write(chunk)
        out.flush()

    async with client_factory(settings) as client:
        executor = SubagentExecutor(
            client = client,
            settings = settings,
            runtime_options = runtime_options,
            trace_logger = tracer,
        )
        result = await executor.spawn_task(
            agent_type = args.agent_type,
            task_name = args.task_name,
            task_description = args.prompt,
            model = args.model,
            on_content_chunk = _on_content_chunk if runtime_options.stream else None,
        )

    if runtime_options.stream:
        out.write("\n")
        out.flush()
        return None
    return result.formatted_output


def main(
    argv: Optional[List[str]] = None,
    client_factory: Callable[[ModelSettings], Any] = build_client,
    output_stream: Optional[TextIO] = None,
) -> int:
    """
    CLI entrypoint for single-shot subagent tasks.

    Prints the formatted report, or only the streamed fragments with --stream.
    """
    out = output_stream or sys.stdout
    args = parse_args(argv)

    logging.basicConfig(
        level = logging.INFO,
        format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers = [logging.StreamHandler()],
    )

    try:
        output = asyncio.run(run(args, client_factory = client_factory, output_stream = out))
    except SubagentError as exc:
        logger.error(f"Error: {type(exc).__name__}: {exc}")
        return 1
    except ValueError as exc:
        logger.error(f"Configuration error: {exc}")
        return 1
    except KeyboardInterrupt:
        logger.info("Task interrupted.")
        return 130

    if output is not None:
        print(output, file = out)
    return 0


if __name__ == "__main__":
    sys.exit(main())
