NAME = "reset"
DESCRIPTION = "Reset this channel's reply chance to 0."


async def execute(ctx) -> None:
    event = ctx.event
    if not event.in_guild:
        await ctx.reply("This command only works in a server channel.")
        return
    await ctx.store.set_counter(event.channel_id, 0)
    await ctx.reply(f"#{event.channel_name} reset to 0%.")
