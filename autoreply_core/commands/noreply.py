NAME = "noreply"
DESCRIPTION = "Disable autonomous replies in this channel."


async def execute(ctx) -> None:
    event = ctx.event
    if not event.in_guild:
        await ctx.reply("This command only works in a server channel.")
        return
    if await ctx.store.remove_reply_channel(event.guild_id, event.channel_id):
        await ctx.reply(f"Replies disabled in #{event.channel_name}.")
    else:
        await ctx.reply(f"Replies were not enabled in #{event.channel_name}.")
