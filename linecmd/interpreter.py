import io
import logging
import typing as t

from . import errors

__all__ = (
    "DEFAULT_PROMPT",
    "CommandResult",
    "CommandHandler",
    "DefaultHandler",
    "EmptyLineHandler",
    "Tokenizer",
    "HandlerReturnT",
    "split_whitespace",
    "unrecognized_command",
    "to_result",
    "Interpreter"
)

logger = logging.getLogger(__name__)

DEFAULT_PROMPT = "> "


class CommandResult(t.NamedTuple):
    """The (output, error) pair produced by a handler."""
    output: str = ""
    error: t.Optional[BaseException] = None


HandlerReturnT = t.Union[
    str,
    None,
    CommandResult,
    tuple[str, t.Optional[BaseException]]
]
CommandHandler = t.Callable[[t.Sequence[str]], HandlerReturnT]
DefaultHandler = t.Callable[[str], HandlerReturnT]
EmptyLineHandler = t.Callable[[], HandlerReturnT]
Tokenizer = t.Callable[[str], t.Sequence[str]]


def split_whitespace(line: str) -> t.Sequence[str]:
    """Split a line on runs of whitespace. Never produces empty tokens."""
    return line.split()


def unrecognized_command(line: str) -> str:
    """
    Default handler for unknown commands.

    Only the raw line is available here, so the name reported is the first
    whitespace-separated field of the line, whatever tokenizer is configured.
    Pass a custom `on_default` to report something else.
    """
    fields = line.split(maxsplit=1)
    name = fields[0] if fields else line.strip()
    return f"unrecognized command: {name}\n"


def to_result(value: HandlerReturnT) -> CommandResult:
    """
    Normalize anything a handler may return into a CommandResult.

    Handlers may return a string, None, or an (output, error) pair.
    """
    if value is None:
        return CommandResult()

    if isinstance(value, str):
        return CommandResult(value)

    if not isinstance(value, tuple) or len(value) != 2:
        raise TypeError(
            f"Handler returned {type(value).__name__}, expected str, None or (output, error)"
        )

    output, error = value
    if output is not None and not isinstance(output, str):
        raise TypeError(f"Handler output must be str, got {type(output).__name__}")

    if error is not None and not isinstance(error, BaseException):
        raise TypeError(f"Handler error must be an exception, got {type(error).__name__}")

    return CommandResult(output or "", error)


def _is_binary(stream: t.IO[t.Any]) -> bool:
    return isinstance(stream, (io.RawIOBase, io.BufferedIOBase))


class Interpreter:
    """
    A line-oriented command interpreter.

    Each line read from `stdin` is tokenized; the first token names a
    command in `commands` and the remaining tokens are passed to it as
    arguments. Whatever the command outputs is written to `stdout`.

    Streams may be text or binary. Binary streams, and bytes passed to
    `process_line`, are decoded and encoded with `encoding`. Undecodable
    bytes are handled according to `unicode_errors`, which defaults to "replace"
    so a stray byte from a remote client does not end the session.

    The three fallback behaviors may be overridden independently, either
    at construction or by assigning the attributes later:

    - `tokenizer` splits a stripped, non-empty line into tokens.
    - `on_empty_line` is called when a line has no tokens. By default the
      last non-empty line is processed again.
    - `on_default` is called with the raw line when no command matches.
      By default it outputs an "unrecognized command" message.

    Any error reported by a command or fallback raises `CommandError`
    after the command's output is written. I/O failures raise
    `StreamError`.
    """
    def __init__(
        self,
        commands: t.MutableMapping[str, CommandHandler],
        stdin: t.IO[t.Any],
        stdout: t.IO[t.Any],
        prompt: str = DEFAULT_PROMPT,
        tokenizer: Tokenizer = split_whitespace,
        on_empty_line: t.Optional[EmptyLineHandler] = None,
        on_default: DefaultHandler = unrecognized_command,
        encoding: str = "utf-8",
        unicode_errors: str = "replace"
    ):
        self.commands = commands
        self.stdin = stdin
        self.stdout = stdout
        self.prompt = prompt
        self.tokenizer = tokenizer
        self.on_default = on_default
        self.encoding = encoding
        self.unicode_errors = unicode_errors

        self.on_empty_line: EmptyLineHandler
        if on_empty_line is None:
            self.on_empty_line = self.repeat_last_line
        else:
            self.on_empty_line = on_empty_line

        # Last raw line that produced at least one token. Empty means none yet.
        self.last_line = ""

    def repeat_last_line(self) -> HandlerReturnT:
        """Default empty-line behavior: process the last non-empty line again."""
        if self.last_line:
            logger.debug(f"Repeating last line {self.last_line!r}")
            self.process_line(self.last_line)

        return None

    def tokenize(self, line: str) -> t.Sequence[str]:
        line = line.strip()
        if not line:
            return []

        return self.tokenizer(line)

    def decode(self, data: t.Union[str, bytes]) -> str:
        if isinstance(data, bytes):
            try:
                return data.decode(self.encoding, self.unicode_errors)
            except UnicodeError as e:
                raise errors.StreamError(f"decode failed: {e}") from e

        return data

    def write(self, text: str) -> None:
        """Write text to the output stream and flush it."""
        data: t.Union[str, bytes] = text

        try:
            if _is_binary(self.stdout):
                data = text.encode(self.encoding, self.unicode_errors)

            self.stdout.write(data)
            self.stdout.flush()
        except (OSError, ValueError) as e:
            raise errors.StreamError(f"write failed: {e}") from e

    def read_line(self) -> str:
        """
        Read one line, terminator included, from the input stream.

        Raises InputClosed at end of file.
        """
        try:
            data = self.stdin.readline()
        except (OSError, ValueError) as e:
            raise errors.StreamError(f"read failed: {e}") from e

        if not data:
            raise errors.InputClosed()

        return self.decode(data)

    def _invoke(self, callback: t.Callable[..., HandlerReturnT], *args: t.Any) -> CommandResult:
        try:
            return to_result(callback(*args))
        except errors.LineCmdError:
            # Already classified, e.g. raised by a repeated line.
            raise
        except Exception as e:
            return CommandResult("", e)

    def process_line(self, raw_line: t.Union[str, bytes]) -> None:
        """
        Process a single line of input.

        Empty lines are passed to `on_empty_line`. Otherwise `last_line`
        is set to the raw line before the command is looked up and called.
        """
        line = self.decode(raw_line)
        tokens = self.tokenize(line)

        command_name: t.Optional[str]
        if not tokens:
            logger.debug("Empty line")
            command_name = None
            result = self._invoke(self.on_empty_line)
        else:
            self.last_line = line
            command_name = tokens[0]
            args = list(tokens[1:])

            handler = self.commands.get(command_name)
            if handler is None:
                logger.debug(f"No command {command_name!r}, using default handler")
                result = self._invoke(self.on_default, line)
            else:
                logger.debug(f"Dispatch {command_name!r} with args {args}")
                result = self._invoke(handler, args)

        if result.output:
            self.write(result.output)

        if result.error is not None:
            raise errors.CommandError(
                str(result.error),
                output=result.output,
                command=command_name,
                error=result.error
            ) from result.error

    def run_loop(self) -> None:
        """
        Prompt, read a line and process it until an error occurs.

        Never returns normally. End of input raises InputClosed.
        """
        try:
            while True:
                self.write(self.prompt)
                self.process_line(self.read_line())
        except errors.LineCmdError as e:
            logger.debug(f"Loop stopped: {e!r}")
            raise

    def loop(self) -> None:
        """Like run_loop, but returns normally when the input is closed."""
        try:
            self.run_loop()
        except errors.InputClosed:
            logger.debug("Input closed.")
            pass
