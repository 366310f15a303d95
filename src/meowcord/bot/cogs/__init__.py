"""
Cogs package for Meowcord.

- **events_listener.py**: on_ready (command registration, weekly reset arming,
  presence) and application command error handling
- **message_listener.py**: Enforces the meow-only rule on new messages
- **meow_cmds.py**: /immune, /reset, /when and /leaderboard

Each module defines a cog class and a setup function to register it with the bot.
The cogs are loaded explicitly in main.py to avoid dynamic imports.
"""
