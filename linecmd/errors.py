import typing as t

__all__ = (
    "LineCmdError",
    "StreamError",
    "InputClosed",
    "CommandError"
)


class LineCmdError(Exception):
    """Base class for all linecmd-related errors."""
    pass


class StreamError(LineCmdError):
    """Reading the input stream or writing the output stream failed.

    Always fatal to the interpreter loop. The underlying exception is
    available as `__cause__`.
    """
    pass


class InputClosed(StreamError):
    """The input stream reached end of file."""
    def __init__(self) -> None:
        super().__init__("input stream closed")


class CommandError(LineCmdError):
    """
    A command handler or one of the fallback handlers reported an error.

    `output` is the text the handler produced, already written to the
    output stream. `command` is None for an empty-line event.
    """
    def __init__(
        self,
        message: str,
        output: str = "",
        command: t.Optional[str] = None,
        error: t.Optional[BaseException] = None
    ):
        super().__init__(message)
        self.message = message
        self.output = output
        self.command = command
        self.error = error

    def __str__(self) -> str:
        if self.command is None:
            return self.message

        return f"{self.command}: {self.message}"
