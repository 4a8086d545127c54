"""
Owner message commands. Each module defines NAME, an optional DESCRIPTION and an
async execute(ctx) taking an owner.CommandContext; owner.load_commands() picks them up.
"""
