from ..cooldown import now_ms, remaining_ms

NAME = "chance"
DESCRIPTION = "Show the reply chance, policy and cooldown for this channel."


async def execute(ctx) -> None:
    event = ctx.event
    if not event.in_guild:
        await ctx.reply("This command only works in a server channel.")
        return
    chance = await ctx.store.get(event.channel_id) or 0
    policy = any(int(cid) == event.channel_id for cid, _ in await ctx.store.reply_channels(event.guild_id))
    left = remaining_ms(await ctx.store.get_cooldown(event.guild_id, event.channel_id), now_ms())
    lines = [f"#{event.channel_name}: {chance}%", f"Replies {'enabled' if policy else 'disabled'} here."]
    if left > 0:
        lines.append(f"Paused for another {-(-left // 60000)} minutes.")
    await ctx.reply("\n".join(lines))
