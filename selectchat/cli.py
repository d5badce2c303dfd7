"""Command line entry point: start either the chat server or a client."""

import sys

from selectchat.client import run_client
from selectchat.server import run_server

PROG = "selectchat"


def _fail(*lines: str) -> int:
    for line in lines:
        print(line, file=sys.stderr)
    return 1


def main(argv=None) -> int:
    """Run ``server <port>`` or ``client <host> <port>``; returns the exit status."""
    args = sys.argv[1:] if argv is None else list(argv)

    if len(args) < 2:
        return _fail(
            "Usage:",
            f"  {PROG} server <port>",
            f"  {PROG} client <host> <port>",
        )

    mode = args[0]
    if mode == "server":
        if len(args) != 2:
            return _fail(f"Usage: {PROG} server <port>")
        port = args[1]

        def start() -> int:
            return run_server(port)

    elif mode == "client":
        if len(args) != 3:
            return _fail(f"Usage: {PROG} client <host> <port>")
        host, port = args[1], args[2]

        def start() -> int:
            return run_client(host, port)

    else:
        return _fail(f"Unknown mode '{mode}'. Use 'server' or 'client'.")

    try:
        return start()
    except OSError as exc:
        return _fail(f"{PROG}: {exc}")
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())