import asyncio
import logging

import pytest

from autoreply_core.owner import (
    CommandRegistry,
    OwnerCommand,
    OwnerCommandDispatcher,
    load_commands,
    parse_command,
)
from autoreply_core.store import CounterStore

from conftest import OWNER_ID


def _dispatcher(config, transport, registry, exits=None):
    store = CounterStore(config.db_path)
    exit_func = (lambda code: transport.calls.append(("exit", code))) if exits is None else exits
    return OwnerCommandDispatcher(config, registry, transport, store, exit_func=exit_func)


def test_parse_command():
    assert parse_command("ar.pause 15 now", "ar.") == ("pause", ("15", "now"))
    assert parse_command("ar.ping", "ar.") == ("ping", ())
    assert parse_command("ar.", "ar.") == ("", ())
    assert parse_command("ar. ping", "ar.") == ("", ("ping",))


def test_registry_is_read_only_and_rejects_duplicates():
    async def noop(ctx):
        return None

    registry = CommandRegistry.of([OwnerCommand("a", noop)])
    with pytest.raises(TypeError):
        registry.commands["b"] = OwnerCommand("b", noop)
    with pytest.raises(ValueError):
        CommandRegistry.of([OwnerCommand("a", noop), OwnerCommand("a", noop)])


def test_load_commands_finds_bundled_commands():
    registry = load_commands()
    assert {"chance", "pause", "resume", "optout", "optin", "reset", "replyhere", "noreply"} <= set(registry.names())
    assert registry.get("pause").description


def test_non_owner_is_not_dispatched(config, transport, make_event):
    dispatcher = _dispatcher(config, transport, CommandRegistry())
    handled = asyncio.run(dispatcher.dispatch(make_event(author_id=42, content="ar.restart")))
    assert handled is False
    assert transport.calls == []


def test_owner_plain_message_passes_through(config, transport, make_event):
    dispatcher = _dispatcher(config, transport, CommandRegistry())
    assert asyncio.run(dispatcher.dispatch(make_event(author_id=OWNER_ID, content="just chatting"))) is False
    assert transport.calls == []


def test_unknown_command_reacts_without_invoking_handlers(config, transport, make_event):
    invoked = []

    async def pause(ctx):
        invoked.append(ctx)

    dispatcher = _dispatcher(config, transport, CommandRegistry.of([OwnerCommand("pause", pause)]))
    handled = asyncio.run(dispatcher.dispatch(make_event(author_id=OWNER_ID, content="ar.ping")))
    assert handled is True
    assert transport.calls == [("react", "❔")]
    assert invoked == []


def test_known_command_receives_event_and_args(config, transport, make_event):
    seen = []

    async def echo(ctx):
        seen.append((ctx.event.message_id, ctx.args))
        await ctx.reply("ok")

    dispatcher = _dispatcher(config, transport, CommandRegistry.of([OwnerCommand("echo", echo)]))
    event = make_event(author_id=OWNER_ID, content="ar.echo one two")
    assert asyncio.run(dispatcher.dispatch(event)) is True
    assert seen == [(555, ("one", "two"))]
    assert transport.sent == ["ok"]


def test_handler_errors_are_logged_not_raised(config, transport, make_event, caplog):
    async def boom(ctx):
        raise RuntimeError("kaboom")

    dispatcher = _dispatcher(config, transport, CommandRegistry.of([OwnerCommand("boom", boom)]))
    with caplog.at_level(logging.ERROR, logger="autoreply.owner"):
        handled = asyncio.run(dispatcher.dispatch(make_event(author_id=OWNER_ID, content="ar.boom")))
    assert handled is True
    assert any("owner command 'boom' failed" in r.getMessage() for r in caplog.records)


def test_restart_deletes_then_shuts_down_then_exits(config, transport, make_event):
    dispatcher = _dispatcher(config, transport, CommandRegistry())
    handled = asyncio.run(dispatcher.dispatch(make_event(author_id=OWNER_ID, content="ar.restart")))
    assert handled is True
    assert transport.names() == ["delete", "shutdown", "exit"]
    assert transport.calls[-1] == ("exit", 0)


def test_restart_continues_when_delete_fails(config, transport, make_event):
    transport.fail_delete = True
    dispatcher = _dispatcher(config, transport, CommandRegistry())
    asyncio.run(dispatcher.dispatch(make_event(author_id=OWNER_ID, content="ar.restart")))
    assert transport.names() == ["delete", "shutdown", "exit"]


def test_restart_exits_even_when_shutdown_fails(config, make_event, caplog):
    from conftest import FakeTransport

    class StuckTransport(FakeTransport):
        async def shutdown(self):
            await super().shutdown()
            raise RuntimeError("client already closed")

    transport = StuckTransport()
    dispatcher = _dispatcher(config, transport, CommandRegistry())
    handled = asyncio.run(dispatcher.dispatch(make_event(author_id=OWNER_ID, content="ar.restart")))
    assert handled is True
    assert transport.calls == [("delete", 555), ("shutdown",), ("exit", 0)]
    assert any("shutdown failed during restart" in r.getMessage() for r in caplog.records)


def test_restart_requires_exact_phrase(config, transport, make_event):
    dispatcher = _dispatcher(config, transport, CommandRegistry())
    asyncio.run(dispatcher.dispatch(make_event(author_id=OWNER_ID, content="ar.restart now")))
    assert "shutdown" not in transport.names()
    assert transport.calls == [("react", "❔")]


def test_transport_failure_inside_dispatch_is_contained(config, make_event, caplog):
    class BrokenTransport:
        async def send_reaction(self, event, emoji):
            raise ConnectionError("gateway gone")

    dispatcher = OwnerCommandDispatcher(config, CommandRegistry(), BrokenTransport(), CounterStore(config.db_path))
    handled = asyncio.run(dispatcher.dispatch(make_event(author_id=OWNER_ID, content="ar.nope")))
    assert handled is True
    assert any("Error processing owner commands" in r.getMessage() for r in caplog.records)
