NAME = "optin"
DESCRIPTION = "Remove a user from the opt-out list: optin <tag>"


async def execute(ctx) -> None:
    if not ctx.args:
        await ctx.reply(f"Usage: `{ctx.config.command_prefix}optin <tag>`")
        return
    tag = ctx.args[0]
    if await ctx.store.remove_opt_out(tag):
        await ctx.reply(f"{tag} opted back in.")
    else:
        await ctx.reply(f"{tag} was not opted out.")
