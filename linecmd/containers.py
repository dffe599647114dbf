#
# Container utilities.
#

import typing as t

from . import interpreter

__all__ = (
    "CommandTable",
)

CommandHandlerTV = t.TypeVar("CommandHandlerTV", bound=interpreter.CommandHandler)


class CommandTable(dict[str, interpreter.CommandHandler]):
    """
    A command table that may be used as a decorator to register the
    function decorated. By default the function is registered under its
    own name; use `command` to pick another one.

    Plain item assignment is not checked.
    """
    def __call__(self, handler: CommandHandlerTV) -> CommandHandlerTV:
        self.add(handler.__name__, handler)
        return handler

    def command(self, name: str) -> t.Callable[[CommandHandlerTV], CommandHandlerTV]:
        def decorator(handler: CommandHandlerTV) -> CommandHandlerTV:
            self.add(name, handler)
            return handler

        return decorator

    def add(self, name: str, handler: interpreter.CommandHandler) -> None:
        # Tokens never contain whitespace, so such a name could never match.
        if not name or name != "".join(name.split()):
            raise ValueError(f"Invalid command name {name!r}")

        self[name] = handler
