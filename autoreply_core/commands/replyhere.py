NAME = "replyhere"
DESCRIPTION = "Enable autonomous replies in this channel."


async def execute(ctx) -> None:
    event = ctx.event
    if not event.in_guild:
        await ctx.reply("This command only works in a server channel.")
        return
    if not await ctx.store.add_reply_channel(event.guild_id, event.channel_id):
        await ctx.reply(f"Replies were already enabled in #{event.channel_name}.")
        return
    # Counters keep growing while a channel is disabled; start fresh on enable.
    await ctx.store.set_counter(event.channel_id, 0)
    await ctx.reply(f"Replies enabled in #{event.channel_name}.")
