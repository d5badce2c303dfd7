"""Interactive chat client: sends stdin lines to the current channel."""

import codecs
import queue
import selectors
import socket
import sys
import threading
from typing import TextIO

from selectchat.protocol import DEFAULT_CHANNEL, MAXLINE, MAXNAME, format_outgoing

_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


class UsernameError(ValueError):
    """Raised when no usable username was entered."""


def read_username(stream: TextIO) -> str:
    """Read one username line of at most ``MAXNAME - 1`` characters.

    Characters beyond that limit stay in ``stream``.
    """
    line = stream.readline(MAXNAME - 1)
    if not line:
        raise UsernameError("No username? Exiting.")
    if line.endswith("\n"):
        line = line[:-1]
    if not line:
        raise UsernameError("Empty username not allowed. Exiting.")
    return line


def _connect(host: str, port) -> socket.socket:
    infos = socket.getaddrinfo(host, str(port), socket.AF_INET, socket.SOCK_STREAM)
    last_error: OSError | None = None
    for family, socktype, proto, _, address in infos:
        try:
            sock = socket.socket(family, socktype, proto)
        except OSError as exc:
            last_error = exc
            continue
        try:
            sock.connect(address)
        except OSError as exc:
            sock.close()
            last_error = exc
            continue
        return sock
    raise last_error or OSError("connect: no usable address")


def _nudge(wake: socket.socket) -> None:
    try:
        wake.send(b"\0")
    except OSError:
        pass


def _pump_lines(stream: TextIO, lines: queue.SimpleQueue, wake: socket.socket) -> None:
    """Feed lines from ``stream`` into ``lines``; ``None`` marks the end."""
    try:
        while True:
            line = stream.readline(MAXLINE - 1)
            lines.put(line or None)
            _nudge(wake)
            if not line:
                return
    except (OSError, ValueError):
        lines.put(None)
        _nudge(wake)


def _chat(sock: socket.socket, stdin: TextIO, stdout: TextIO, err: TextIO, channel: str) -> None:
    wake_r, wake_w = socket.socketpair()
    lines: queue.SimpleQueue = queue.SimpleQueue()
    decoder = codecs.getincrementaldecoder(_ENCODING)("replace")
    threading.Thread(target=_pump_lines, args=(stdin, lines, wake_w), daemon=True).start()
    try:
        with selectors.DefaultSelector() as selector:
            selector.register(sock, selectors.EVENT_READ)
            selector.register(wake_r, selectors.EVENT_READ)
            while True:
                ready = {key.fileobj for key, _ in selector.select()}

                if sock in ready:
                    try:
                        data = sock.recv(MAXLINE - 1)
                    except OSError as exc:
                        err.write(f"read from server: {exc}\n")
                        err.flush()
                        return
                    if not data:
                        stdout.write("Server closed connection.\n")
                        stdout.flush()
                        return
                    stdout.write(decoder.decode(data))
                    stdout.flush()

                if wake_r in ready:
                    wake_r.recv(4096)
                    while True:
                        try:
                            line = lines.get_nowait()
                        except queue.Empty:
                            break
                        if line is None:
                            return
                        text = line[:-1] if line.endswith("\n") else line
                        if not text:
                            continue
                        payload = format_outgoing(channel, text).encode(_ENCODING, _ERRORS)
                        try:
                            sock.sendall(payload)
                        except OSError as exc:
                            err.write(f"write to server: {exc}\n")
                            err.flush()
                            return
    finally:
        wake_r.close()
        wake_w.close()


def run_client(host, port, stdin=None, stdout=None) -> int:
    """Connect, register a username and chat until either side closes.

    Errors are reported on standard error. Returns the exit status;
    connection failures raise :class:`OSError`.
    """
    stdin = sys.stdin if stdin is None else stdin
    stdout = sys.stdout if stdout is None else stdout
    err = sys.stderr

    with _connect(host, port) as sock:
        stdout.write(f"Enter username (max {MAXNAME - 1} chars): ")
        stdout.flush()
        try:
            name = read_username(stdin)
        except UsernameError as exc:
            err.write(f"{exc}\n")
            err.flush()
            return 1
        try:
            sock.sendall(name.encode(_ENCODING, _ERRORS) + b"\n")
        except OSError as exc:
            err.write(f"write username: {exc}\n")
            err.flush()
            return 1
        stdout.write(
            f"Connected to {host}:{port} as '{name}' (channel={DEFAULT_CHANNEL}).\n"
        )
        stdout.flush()
        _chat(sock, stdin, stdout, err, DEFAULT_CHANNEL)
    return 0