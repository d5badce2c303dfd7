"""Wire format of the chat: limits, message parsing and message formatting."""

MAXLINE = 512
MAXNAME = 32
MAXCHAN = 32
MAX_CLIENTS = 1024
DEFAULT_CHANNEL = "general"


def _clip(text: str) -> str:
    """Limit a formatted line to what fits in one line buffer."""
    return text[: MAXLINE - 1]


def parse_channel_message(line: str) -> tuple[str, str] | None:
    """Split ``<channel>:<message>`` at the first colon.

    Returns ``None`` when the line holds no colon. The channel name is cut
    to the longest name a channel may have.
    """
    channel, colon, body = line.partition(":")
    if not colon:
        return None
    return channel[: MAXCHAN - 1], body


def clean_username(line: str) -> str:
    """Drop one trailing newline and cut the name to the allowed length."""
    if line.endswith("\n"):
        line = line[:-1]
    return line[: MAXNAME - 1]


def format_join(name: str, channel: str) -> str:
    """Announcement sent when a user has chosen a name."""
    return _clip(f"*** {name} has joined {channel} ***\n")


def format_leave(name: str, channel: str) -> str:
    """Announcement sent when a named user disconnects."""
    return _clip(f"*** {name} has left {channel} ***\n")


def format_chat(name: str, body: str) -> str:
    """Line relayed by the server to the other members of a channel."""
    return _clip(f"{name}: {body}\n")


def format_outgoing(channel: str, text: str) -> str:
    """Line a client sends to the server for ``channel``."""
    return _clip(f"{channel}:{text}\n")