import argparse
import logging
import socketserver
import sys
import typing as t

import linecmd

logger = logging.getLogger("linecmd.console")

commands = linecmd.CommandTable()


@commands
def hello(args: t.Sequence[str]) -> str:
    if not args:
        return "What's your name?\n"

    return f"Hello, {' '.join(args)}\n"


class ConsoleServer(socketserver.ThreadingTCPServer):
    """
    Serves one console per TCP connection, each on its own thread.
    """
    allow_reuse_address = True
    daemon_threads = True

    def __init__(
        self,
        address: tuple[str, int],
        table: t.MutableMapping[str, linecmd.CommandHandler],
        prompt: str = linecmd.DEFAULT_PROMPT
    ):
        self.table = table
        self.prompt = prompt
        super().__init__(address, ConsoleRequestHandler)


class ConsoleRequestHandler(socketserver.StreamRequestHandler):
    def handle(self) -> None:
        server = t.cast(ConsoleServer, self.server)
        logger.info(f"Accepted console from {self.client_address}")

        console = linecmd.Interpreter(
            server.table,
            self.rfile,
            self.wfile,
            prompt=server.prompt
        )

        try:
            console.loop()
        except linecmd.LineCmdError as e:
            logger.info(f"Console {self.client_address} stopped: {e}")
        else:
            logger.info(f"Console {self.client_address} closed")


def set_up_argparse() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="linecmd",
        description=(
            "A demo console. Runs on stdin/stdout, or on TCP if a port is given."
        )
    )

    parser.add_argument(
        "-p", "--port", type=int, default=None, help=(
            "Listen on this TCP port and serve a console per connection."
        )
    )

    parser.add_argument(
        "--host", type=str, default="", help=(
            "The address to listen on. Defaults to all interfaces."
        )
    )

    parser.add_argument(
        "--prompt", type=str, default=linecmd.DEFAULT_PROMPT, help=(
            "The prompt written before each line."
        )
    )

    parser.add_argument(
        "-v", "--verbose", action="store_true", help=(
            "Enable debug logging."
        )
    )

    return parser


def serve(host: str, port: int, prompt: str) -> None:
    with ConsoleServer((host, port), commands, prompt) as server:
        logger.info(f"Listening on {server.server_address}")
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            logger.info("Shutting down.")


def main() -> None:
    parser = set_up_argparse()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr
    )

    if args.port is not None:
        serve(args.host, args.port, args.prompt)
        return

    console = linecmd.Interpreter(commands, sys.stdin, sys.stdout, prompt=args.prompt)

    try:
        console.loop()
    except linecmd.LineCmdError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
