# selectchat

A small chat system over TCP: one server and any number of terminal
clients. Every client picks a username when it connects and is placed in
the `general` channel. Lines typed by one client are relayed to every
other client in the same channel.

## Installing

```
pip install .
```

## Running a server

```
selectchat server 5000
```

The server listens on all IPv4 interfaces on the given port. It logs new
connections, usernames being set, disconnections and every relayed
message to standard output; rejected connections and socket errors go to
standard error. At most 1024 clients are served at once. Stop it with
Ctrl+C.

## Connecting a client

```
selectchat client localhost 5000
```

The client asks for a username of at most 31 characters (an empty name
is refused and the client exits with status 1), then prints everything
the server sends. Each non-empty line you type is sent to your current
channel. Ctrl+D ends the session; the client also stops when the server
closes the connection.

## Exit status

`selectchat` exits with 0 on a normal end, 1 on a usage error, an
unknown mode or a network error such as a refused connection (the error
is printed as `selectchat: <message>`), and 130 when interrupted on the
client side.

## What other users see

- `*** alice has joined general ***` when someone sets their name
- `alice: hello there` for a chat message
- `*** alice has left general ***` when someone disconnects

The sender does not receive its own messages or announcements back.

## Wire protocol

The protocol is plain UTF-8 text:

1. The first data a client sends is its username; one trailing newline
   is dropped and the name is cut to 31 characters.
2. Everything after that has the form `<channel>:<message>`, split at
   the first colon; the channel name is cut to 31 characters. The server
   relays it only when the channel matches the sender's current channel.
   Data without a colon, or for another channel, is ignored.

Formatted lines are limited to 511 characters.

## Using it as a library

- `selectchat.protocol` holds the limits (`MAXLINE`, `MAXNAME`,
  `MAXCHAN`, `MAX_CLIENTS`, `DEFAULT_CHANNEL`) and the line helpers
  `parse_channel_message`, `clean_username`, `format_join`,
  `format_leave`, `format_chat` and `format_outgoing`.
- `selectchat.server.ChatHub` holds the routing logic with no sockets
  involved. `connect(conn_id)` registers a `Session`,
  `receive(conn_id, data)` and `disconnect(conn_id)` return the
  deliveries to make as a list of `(conn_id, payload_bytes)` pairs.
  `connect` raises `ConnectionRefusedError` when the hub is full and
  `ValueError` for an id that is already registered.
- `selectchat.server.ChatServer(port, host=None)` wraps a hub around a
  listening socket. `serve_forever()` runs until `close()` is called;
  it can be used as a context manager. Its `address` attribute holds the
  bound address, and its `out` and `err` streams can be replaced to
  capture the log. `run_server(port)` serves until Ctrl+C.
- `selectchat.client.run_client(host, port, stdin=None, stdout=None)`
  runs a client against any pair of text streams and returns the exit
  status. `read_username(stream)` reads the username line and raises
  `UsernameError` when it is missing or empty.
- `selectchat.cli.main(argv=None)` is the command line entry point.

## Limitations

- Every client stays in `general`: there is no command to join or
  create another channel.
- The server treats each chunk read from a connection as one line; it
  does not reassemble lines split across reads or split several lines
  arriving together.
- There are no private messages, no history and no authentication.