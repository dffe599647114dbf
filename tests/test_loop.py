import io
import typing as t

import pytest

import linecmd


def good(args: t.Sequence[str]) -> str:
    return f"good {list(args)}\n"


def bad(args: t.Sequence[str]) -> tuple[str, t.Optional[BaseException]]:
    return "bad\n", ValueError("oops")


COMMANDS: dict[str, linecmd.CommandHandler] = {"good": good, "bad": bad}


def test_prompt_and_output_alternate() -> None:
    stdin = io.StringIO("hello \n  \ngood\ngood arg1 arg2\n")
    stdout = io.StringIO()
    interp = linecmd.Interpreter(COMMANDS, stdin, stdout)

    with pytest.raises(linecmd.InputClosed):
        interp.run_loop()

    assert stdout.getvalue() == (
        "> unrecognized command: hello\n"
        "> unrecognized command: hello\n"
        "> good []\n"
        "> good ['arg1', 'arg2']\n"
        "> "
    )


def test_handler_error_stops_loop() -> None:
    stdin = io.StringIO("good\nbad\ngood\n")
    stdout = io.StringIO()
    interp = linecmd.Interpreter(COMMANDS, stdin, stdout)

    with pytest.raises(linecmd.CommandError):
        interp.run_loop()

    # No prompt after the failing command, and the last line is never read.
    assert stdout.getvalue() == "> good []\n> bad\n"
    assert stdin.readline() == "good\n"


def test_loop_returns_on_end_of_input() -> None:
    stdout = io.StringIO()
    interp = linecmd.Interpreter(COMMANDS, io.StringIO("good\n"), stdout)

    interp.loop()

    assert stdout.getvalue() == "> good []\n> "


def test_loop_propagates_command_error() -> None:
    interp = linecmd.Interpreter(COMMANDS, io.StringIO("bad\n"), io.StringIO())

    with pytest.raises(linecmd.CommandError):
        interp.loop()


def test_last_line_without_terminator() -> None:
    stdout = io.StringIO()
    interp = linecmd.Interpreter(COMMANDS, io.StringIO("good a"), stdout)

    interp.loop()

    assert stdout.getvalue() == "> good ['a']\n> "
    assert interp.last_line == "good a"


def test_custom_prompt() -> None:
    stdout = io.StringIO()
    interp = linecmd.Interpreter(COMMANDS, io.StringIO("good\n\n"), stdout, prompt="cmd$ ")

    interp.loop()

    assert stdout.getvalue() == "cmd$ good []\ncmd$ good []\ncmd$ "


def test_binary_streams() -> None:
    stdin = io.BytesIO(b"good \xc3\xa9\r\nnope\n")
    stdout = io.BytesIO()
    interp = linecmd.Interpreter(COMMANDS, stdin, stdout)

    interp.loop()

    assert stdout.getvalue() == (
        "> good ['\xe9']\n> unrecognized command: nope\n> ".encode("utf-8")
    )


class FailingReader(io.StringIO):
    def readline(self, size: t.Optional[int] = -1) -> str:
        raise OSError("connection reset")


def test_read_failure_is_stream_error() -> None:
    stdout = io.StringIO()
    interp = linecmd.Interpreter(COMMANDS, FailingReader(), stdout)

    with pytest.raises(linecmd.StreamError) as excinfo:
        interp.loop()

    assert not isinstance(excinfo.value, linecmd.InputClosed)
    assert isinstance(excinfo.value.__cause__, OSError)
    assert stdout.getvalue() == "> "


def test_prompt_write_failure_is_stream_error() -> None:
    stdout = io.StringIO()
    stdout.close()
    interp = linecmd.Interpreter(COMMANDS, io.StringIO("good\n"), stdout)

    with pytest.raises(linecmd.StreamError):
        interp.loop()


def test_binary_stream_with_undecodable_bytes() -> None:
    stdout = io.BytesIO()
    interp = linecmd.Interpreter(COMMANDS, io.BytesIO(b"caf\xe9\ngood \xff\n"), stdout)

    interp.loop()

    assert stdout.getvalue() == (
        "> unrecognized command: caf�\n> good ['�']\n> ".encode("utf-8")
    )


def test_binary_stream_strict_decoding_is_stream_error() -> None:
    interp = linecmd.Interpreter(
        COMMANDS, io.BytesIO(b"caf\xe9\n"), io.BytesIO(), unicode_errors="strict"
    )

    with pytest.raises(linecmd.StreamError):
        interp.loop()
