class ToolExecutionError(Exception):
    """A tool failed; the message is safe to show to the client."""


class ToolArgumentError(ToolExecutionError):
    """Tool arguments do not satisfy the tool's input schema."""
