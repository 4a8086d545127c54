from ..cooldown import now_ms

NAME = "pause"
DESCRIPTION = "Pause replies in this channel: pause <minutes>"

MAX_MINUTES = 60 * 24 * 7


async def execute(ctx) -> None:
    event = ctx.event
    if not event.in_guild:
        await ctx.reply("This command only works in a server channel.")
        return
    try:
        minutes = int(ctx.args[0]) if ctx.args else 30
    except ValueError:
        await ctx.reply(f"Usage: `{ctx.config.command_prefix}pause <minutes>`")
        return
    minutes = max(1, min(minutes, MAX_MINUTES))
    await ctx.store.set_cooldown(event.guild_id, event.channel_id, now_ms() + minutes * 60_000)
    await ctx.reply(f"Replies paused in #{event.channel_name} for {minutes} minutes.")
