"""
Tests for subagent_dispatch/formatter.py - completion envelope.
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from tests.utils import run_tests
from subagent_dispatch.formatter import format_task_result


def test_exact_envelope():
    rendered = format_task_result(
        task_title = "Find config loaders",
        type_description = "Fast agent for exploring codebases",
        model_name = "qwen3",
        raw_output = "Found 2 loaders.",
    )
    expected = (
        "=== Subagent Task: Find config loaders ===\n"
        "Type: Fast agent for exploring codebases\n"
        "Model: qwen3\n"
        "\n"
        "Found 2 loaders.\n"
        "\n"
        "=== Task Complete ==="
    )
    assert rendered == expected, rendered
    print("PASS: test_exact_envelope")


def test_raw_output_verbatim():
    raw_output = "<b>{not a field}</b>\n=== Task Complete ===\n\\n & \"quotes\""
    rendered = format_task_result("t {x}", "desc", "m", raw_output)

    header = "=== Subagent Task: t {x} ==="
    footer = "=== Task Complete ==="
    assert rendered.startswith(header)
    assert rendered.endswith(footer)
    body = rendered[len(header):-len(footer)]
    assert raw_output in body, "Raw output must appear unescaped between header and footer"
    print("PASS: test_raw_output_verbatim")


def test_empty_output_still_wrapped():
    rendered = format_task_result("task", "desc", "model", "")
    assert rendered.startswith("=== Subagent Task: task ===")
    assert rendered.endswith("=== Task Complete ===")
    print("PASS: test_empty_output_still_wrapped")


if __name__ == "__main__":
    sys.exit(0 if run_tests([
        test_exact_envelope,
        test_raw_output_verbatim,
        test_empty_output_still_wrapped,
    ]) else 1)
