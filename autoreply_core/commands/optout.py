NAME = "optout"
DESCRIPTION = "Exclude a user from autonomous replies: optout <tag> [user id]"


async def execute(ctx) -> None:
    if not ctx.args:
        await ctx.reply(f"Usage: `{ctx.config.command_prefix}optout <tag> [user id]`")
        return
    tag = ctx.args[0]
    # Without an id the tag doubles as the key, which keeps tag-only rows unique.
    user_id = ctx.args[1] if len(ctx.args) > 1 else f"tag:{tag}"
    await ctx.store.add_opt_out(user_id, tag)
    await ctx.reply(f"{tag} opted out.")
