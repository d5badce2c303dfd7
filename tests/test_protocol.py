import pytest

from selectchat.protocol import (
    MAXCHAN,
    MAXLINE,
    MAXNAME,
    clean_username,
    format_chat,
    format_join,
    format_leave,
    format_outgoing,
    parse_channel_message,
)


def test_format_join_matches_wire_text():
    assert format_join("alice", "general") == "*** alice has joined general ***\n"


def test_format_leave_matches_wire_text():
    assert format_leave("alice", "general") == "*** alice has left general ***\n"


def test_format_chat_matches_wire_text():
    assert format_chat("alice", "hello") == "alice: hello\n"


def test_format_outgoing_round_trips_through_parse():
    line = format_outgoing("general", "hi: there")
    assert line.endswith("\n")
    assert parse_channel_message(line[:-1]) == ("general", "hi: there")


def test_parse_without_colon_is_none():
    assert parse_channel_message("no separator here") is None


def test_parse_splits_at_first_colon():
    assert parse_channel_message("room:a:b") == ("room", "a:b")


def test_parse_truncates_long_channel():
    channel, body = parse_channel_message("x" * 100 + ":body")
    assert channel == "x" * (MAXCHAN - 1)
    assert body == "body"


def test_parse_empty_body():
    assert parse_channel_message("general:") == ("general", "")


@pytest.mark.parametrize("formatter", [format_chat, format_outgoing, format_join, format_leave])
def test_formatted_lines_fit_line_buffer(formatter):
    line = formatter("n", "y" * 2000)
    assert len(line) == MAXLINE - 1
    assert not line.endswith("\n")


def test_clean_username_strips_one_newline():
    assert clean_username("bob\n") == "bob"
    assert clean_username("bob\n\n") == "bob\n"


def test_clean_username_truncates():
    assert clean_username("z" * 80 + "\n") == "z" * (MAXNAME - 1)


def test_clean_username_without_newline_unchanged():
    assert clean_username("carol") == "carol"