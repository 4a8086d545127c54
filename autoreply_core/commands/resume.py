NAME = "resume"
DESCRIPTION = "Lift the pause on this channel."


async def execute(ctx) -> None:
    event = ctx.event
    if not event.in_guild:
        await ctx.reply("This command only works in a server channel.")
        return
    if await ctx.store.clear_cooldown(event.guild_id, event.channel_id):
        await ctx.reply(f"Replies resumed in #{event.channel_name}.")
    else:
        await ctx.reply(f"#{event.channel_name} was not paused.")
