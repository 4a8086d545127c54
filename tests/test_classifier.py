import itertools

from autoreply_core.audit import format_message_line
from autoreply_core.classifier import MessageOrigin, classify
from autoreply_core.events import MessageEvent, Poll, describe_content


def test_each_origin(make_event):
    assert classify(make_event(author_system=True)) is MessageOrigin.SYSTEM
    assert classify(make_event(author_bot=True)) is MessageOrigin.APPLICATION
    assert classify(make_event(author_bot=True, author_verified_bot=True)) is MessageOrigin.VERIFIED_APPLICATION
    assert classify(make_event(webhook_id=77)) is MessageOrigin.WEBHOOK
    assert classify(make_event(guild_id=None, channel_id=5)) is MessageOrigin.DIRECT
    assert classify(make_event()) is MessageOrigin.GUILD


def test_precedence_first_match_wins(make_event):
    # System beats every other flag.
    assert classify(make_event(author_system=True, author_bot=True, webhook_id=1)) is MessageOrigin.SYSTEM
    # An unverified bot posting through a webhook is still an application.
    assert classify(make_event(author_bot=True, webhook_id=1)) is MessageOrigin.APPLICATION
    assert classify(make_event(author_verified_bot=True, webhook_id=1, guild_id=None)) is (
        MessageOrigin.VERIFIED_APPLICATION
    )
    assert classify(make_event(webhook_id=1, guild_id=None)) is MessageOrigin.WEBHOOK


def test_classification_is_total(make_event):
    seen = set()
    for system, bot, verified, webhook, guild in itertools.product([False, True], repeat=5):
        event = make_event(
            author_system=system,
            author_bot=bot,
            author_verified_bot=verified,
            webhook_id=9 if webhook else None,
            guild_id=10 if guild else None,
        )
        origin = classify(event)
        assert isinstance(origin, MessageOrigin)
        seen.add(origin)
    assert seen == set(MessageOrigin)


def test_only_human_and_verified_origins_are_reply_eligible():
    eligible = {origin for origin in MessageOrigin if origin.reply_eligible}
    assert eligible == {MessageOrigin.VERIFIED_APPLICATION, MessageOrigin.DIRECT, MessageOrigin.GUILD}
    assert len({origin.label for origin in MessageOrigin}) == len(MessageOrigin)


def test_describe_content_marks_embeds_and_polls(make_event):
    event = make_event(
        content="line one\r\nline two",
        embed_count=1,
        poll=Poll(question="Best\nfruit?", answers=("apple", "pear")),
    )
    assert describe_content(event) == "line one line two EMBED  POLL  Best fruit? - apple, pear "


def test_message_lines(make_event):
    event = make_event(content="hi")
    assert format_message_line(MessageOrigin.GUILD, event, chance=7) == "7% - Test Server - #general - alice - hi"
    assert format_message_line(MessageOrigin.GUILD, event) == "0% - Test Server - #general - alice - hi"
    assert format_message_line(MessageOrigin.APPLICATION, event).startswith("APP - Test Server")
    dm = MessageEvent(message_id=1, author_id=2, author_tag="bob", content="psst")
    assert format_message_line(MessageOrigin.DIRECT, dm) == "DM - bob - psst"
