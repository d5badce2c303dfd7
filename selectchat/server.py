"""Multi-client chat server built around a pure message hub."""

import selectors
import socket
import sys
from collections.abc import Callable
from dataclasses import dataclass
from types import MappingProxyType

from selectchat.protocol import (
    DEFAULT_CHANNEL,
    MAX_CLIENTS,
    MAXLINE,
    clean_username,
    format_chat,
    format_join,
    format_leave,
    parse_channel_message,
)

_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


@dataclass
class Session:
    """One connected client; an empty name means no username was read yet."""

    conn_id: int
    name: str = ""
    channel: str = DEFAULT_CHANNEL


class ChatHub:
    """Routes chat traffic between sessions without touching any socket.

    Each method returns the deliveries to make as ``(conn_id, payload)``
    pairs, in session order.
    """

    def __init__(
        self,
        max_clients: int = MAX_CLIENTS,
        log: Callable[[str], None] = print,
    ) -> None:
        self._max_clients = max_clients
        self._log = log
        self._sessions: dict[int, Session] = {}

    @property
    def sessions(self) -> MappingProxyType:
        return MappingProxyType(self._sessions)

    def connect(self, conn_id: int) -> Session:
        """Register a new connection in the default channel."""
        if conn_id in self._sessions:
            raise ValueError(f"connection {conn_id} is already registered")
        if len(self._sessions) >= self._max_clients:
            raise ConnectionRefusedError(f"Too many clients, rejecting fd={conn_id}")
        session = Session(conn_id)
        self._sessions[conn_id] = session
        return session

    def receive(self, conn_id: int, data: bytes) -> list[tuple[int, bytes]]:
        """Handle one chunk read from a connection."""
        session = self._sessions[conn_id]
        text = data.decode(_ENCODING, _ERRORS)

        if not session.name:
            session.name = clean_username(text)
            deliveries = self._broadcast(
                conn_id, session.channel, format_join(session.name, session.channel)
            )
            self._log(
                f"Client fd={conn_id} is now known as '{session.name}' "
                f"in channel '{session.channel}'"
            )
            return deliveries

        if text.endswith("\n"):
            text = text[:-1]
        parsed = parse_channel_message(text)
        if parsed is None:
            return []
        channel, body = parsed
        if channel != session.channel:
            return []
        deliveries = self._broadcast(conn_id, channel, format_chat(session.name, body))
        self._log(f"[{session.name}@{channel}] {body}")
        return deliveries

    def disconnect(self, conn_id: int) -> list[tuple[int, bytes]]:
        """Remove a connection that was closed by its peer."""
        session = self._sessions[conn_id]
        deliveries: list[tuple[int, bytes]] = []
        if session.name:
            deliveries = self._broadcast(
                conn_id, session.channel, format_leave(session.name, session.channel)
            )
            self._log(
                f"Client '{session.name}' (fd={conn_id}) disconnected "
                f"from channel '{session.channel}'"
            )
        else:
            self._log(
                f"Unnamed client (fd={conn_id}) disconnected before setting username"
            )
        del self._sessions[conn_id]
        return deliveries

    def _discard(self, conn_id: int) -> None:
        self._sessions.pop(conn_id, None)

    def _broadcast(self, sender: int, channel: str, text: str) -> list[tuple[int, bytes]]:
        payload = text.encode(_ENCODING, _ERRORS)
        return [
            (cid, payload)
            for cid, other in self._sessions.items()
            if cid != sender and other.channel == channel
        ]


class ChatServer:
    """Listening TCP server that relays messages through a :class:`ChatHub`.

    Log lines go to the ``out`` and ``err`` streams, which default to the
    process's standard output and error and may be replaced after creation.
    """

    def __init__(self, port, host=None) -> None:
        self._port = port
        self.out = sys.stdout
        self.err = sys.stderr
        self.hub = ChatHub(log=self._info)
        self._conns: dict[int, socket.socket] = {}
        self._closed = False
        self._serving = False
        self._listener = self._bind(host, port)
        self.address = self._listener.getsockname()

    @staticmethod
    def _bind(host, port) -> socket.socket:
        infos = socket.getaddrinfo(
            host or None, str(port), socket.AF_INET, socket.SOCK_STREAM, 0, socket.AI_PASSIVE
        )
        last_error: OSError | None = None
        for family, socktype, proto, _, sockaddr in infos:
            try:
                sock = socket.socket(family, socktype, proto)
            except OSError as exc:
                last_error = exc
                continue
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            try:
                sock.bind(sockaddr)
                sock.listen(10)
            except OSError as exc:
                sock.close()
                last_error = exc
                continue
            return sock
        raise last_error or OSError("bind: no usable address")

    def _info(self, message: str) -> None:
        self.out.write(message + "\n")
        self.out.flush()

    def _error(self, message: str) -> None:
        self.err.write(message + "\n")
        self.err.flush()

    def serve_forever(self) -> None:
        """Accept and relay until :meth:`close` is called."""
        self._serving = True
        self._info(f"Server listening on port {self._port}...")
        with selectors.DefaultSelector() as selector:
            selector.register(self._listener, selectors.EVENT_READ)
            try:
                while not self._closed:
                    for key, _ in selector.select(timeout=0.2):
                        if self._closed:
                            break
                        if key.fileobj is self._listener:
                            self._accept(selector)
                        else:
                            self._read(selector, key.fileobj)
            finally:
                self._serving = False
                self._cleanup()

    def _accept(self, selector: selectors.BaseSelector) -> None:
        try:
            conn, (addr, port) = self._listener.accept()
        except OSError as exc:
            self._error(f"accept: {exc}")
            return
        fd = conn.fileno()
        try:
            self.hub.connect(fd)
        except ConnectionRefusedError as exc:
            self._error(str(exc))
            conn.close()
            return
        self._conns[fd] = conn
        selector.register(conn, selectors.EVENT_READ)
        self._info(
            f"New connection from {addr}:{port} → assigned fd={fd} "
            f"(channel='{DEFAULT_CHANNEL}')"
        )

    def _read(self, selector: selectors.BaseSelector, conn: socket.socket) -> None:
        fd = conn.fileno()
        try:
            data = conn.recv(MAXLINE - 1)
        except OSError as exc:
            self._error(f"read: {exc}")
            self.hub._discard(fd)
            self._drop(selector, fd)
            return
        if not data:
            self._deliver(self.hub.disconnect(fd))
            self._drop(selector, fd)
        else:
            self._deliver(self.hub.receive(fd, data))

    def _deliver(self, deliveries: list[tuple[int, bytes]]) -> None:
        for target, payload in deliveries:
            conn = self._conns.get(target)
            if conn is None:
                continue
            try:
                conn.sendall(payload)
            except OSError:
                pass

    def _drop(self, selector: selectors.BaseSelector, fd: int) -> None:
        conn = self._conns.pop(fd)
        selector.unregister(conn)
        conn.close()

    def _cleanup(self) -> None:
        self._listener.close()
        for conn in self._conns.values():
            conn.close()
        self._conns.clear()

    def close(self) -> None:
        """Stop serving and close every socket."""
        self._closed = True
        if not self._serving:
            self._cleanup()

    def __enter__(self) -> "ChatServer":
        return self

    def __exit__(self, *args) -> None:
        self.close()


def run_server(port) -> int:
    """Serve on ``port`` until interrupted; returns the exit status."""
    with ChatServer(port) as server:
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            pass
    return 0