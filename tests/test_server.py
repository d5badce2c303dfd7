import socket
import threading
import time

import pytest

from selectchat.protocol import DEFAULT_CHANNEL, MAXNAME, format_chat, format_join, format_leave
from selectchat.server import ChatHub, ChatServer, Session


def _hub():
    logs = []
    return ChatHub(log=logs.append), logs


def test_connect_puts_session_in_default_channel():
    hub, _ = _hub()
    session = hub.connect(7)
    assert session == Session(7, "", DEFAULT_CHANNEL)
    assert set(hub.sessions) == {7}


def test_connect_twice_rejected():
    hub, _ = _hub()
    hub.connect(1)
    with pytest.raises(ValueError):
        hub.connect(1)


def test_hub_full_refuses():
    hub = ChatHub(max_clients=1, log=lambda _: None)
    hub.connect(1)
    with pytest.raises(ConnectionRefusedError):
        hub.connect(2)


def test_first_line_is_username_and_join_is_broadcast():
    hub, logs = _hub()
    hub.connect(1)
    hub.connect(2)
    deliveries = hub.receive(2, b"bob\n")
    assert hub.sessions[2].name == "bob"
    assert deliveries == [(1, format_join("bob", "general").encode())]
    assert logs == ["Client fd=2 is now known as 'bob' in channel 'general'"]


def test_username_is_truncated():
    hub, _ = _hub()
    hub.connect(1)
    hub.receive(1, b"q" * 100 + b"\n")
    assert hub.sessions[1].name == "q" * (MAXNAME - 1)


def test_message_relayed_to_others_only():
    hub, logs = _hub()
    for cid in (1, 2, 3):
        hub.connect(cid)
    hub.receive(1, b"alice\n")
    deliveries = hub.receive(1, b"general:hello\n")
    payload = format_chat("alice", "hello").encode()
    assert deliveries == [(2, payload), (3, payload)]
    assert logs[-1] == "[alice@general] hello"


def test_other_channel_and_malformed_lines_ignored():
    hub, _ = _hub()
    hub.connect(1)
    hub.connect(2)
    hub.receive(1, b"alice\n")
    assert hub.receive(1, b"random:hello\n") == []
    assert hub.receive(1, b"no colon\n") == []


def test_disconnect_named_announces_leave():
    hub, logs = _hub()
    hub.connect(1)
    hub.connect(2)
    hub.receive(1, b"alice\n")
    deliveries = hub.disconnect(1)
    assert deliveries == [(2, format_leave("alice", "general").encode())]
    assert 1 not in hub.sessions
    assert logs[-1] == "Client 'alice' (fd=1) disconnected from channel 'general'"


def test_disconnect_unnamed_is_silent():
    hub, logs = _hub()
    hub.connect(1)
    hub.connect(2)
    assert hub.disconnect(1) == []
    assert logs == ["Unnamed client (fd=1) disconnected before setting username"]


def test_receive_unknown_connection_raises():
    hub, _ = _hub()
    with pytest.raises(KeyError):
        hub.receive(99, b"x\n")


@pytest.fixture
def server():
    srv = ChatServer(0, "127.0.0.1")
    thread = threading.Thread(target=srv.serve_forever, daemon=True)
    thread.start()
    yield srv
    srv.close()
    thread.join(timeout=5)


def _recv_exactly(sock, size):
    data = b""
    while len(data) < size:
        chunk = sock.recv(size - len(data))
        if not chunk:
            break
        data += chunk
    return data


def _wait_for(predicate):
    deadline = time.monotonic() + 5
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


def _named(srv, name):
    return any(s.name == name for s in list(srv.hub.sessions.values()))


def test_server_relays_between_clients(server):
    alice = socket.create_connection(server.address, timeout=5)
    alice.sendall(b"alice\n")
    assert _wait_for(lambda: _named(server, "alice"))

    bob = socket.create_connection(server.address, timeout=5)
    bob.sendall(b"bob\n")
    join = format_join("bob", "general").encode()
    assert _recv_exactly(alice, len(join)) == join

    bob.sendall(b"general:hello\n")
    chat = format_chat("bob", "hello").encode()
    assert _recv_exactly(alice, len(chat)) == chat

    bob.close()
    leave = format_leave("bob", "general").encode()
    assert _recv_exactly(alice, len(leave)) == leave
    alice.close()


def test_closed_server_refuses_connections():
    with ChatServer(0, "127.0.0.1") as srv:
        address = srv.address
    with pytest.raises(OSError):
        socket.create_connection(address, timeout=2)