"""Plain-text completion envelope for subagent results."""


TASK_HEADER_TEMPLATE = "=== Subagent Task: {title} ==="
TASK_FOOTER = "=== Task Complete ==="


def format_task_result(
    task_title: str,
    type_description: str,
    model_name: str,
    raw_output: str,
) -> str:
    """Wrap raw model output in the task header/footer; output is not escaped."""
    header = TASK_HEADER_TEMPLATE.format(title = task_title)
    return (
        f"{header}\n"
        f"Type: {type_description}\n"
        f"Model: {model_name}\n"
        "\n"
        f"{raw_output}\n"
        "\n"
        f"{TASK_FOOTER}"
    )
