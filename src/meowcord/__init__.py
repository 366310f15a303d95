"""
Meowcord - a meow-only channel moderator for Discord

Meowcord keeps a single Discord channel meow-only. Every message there must be
a meow ("meow", "mrrrow", "MEOW"...), optionally dressed up with emojis and
text emoticons; anything else earns its author a strike.

Core Components:

- **Classifier**: decides whether a message is an acceptable meow
- **State Store**: strike tallies and immunity flags, written through to JSON
- **Enforcement**: strikes, warns and deletes non-meow messages after a grace period
- **Weekly Reset**: posts the week's worst and best meowers, then clears tallies
- **Commands**: /immune, /reset, /when and /leaderboard slash commands
- **Interactive Console**: live status and graceful restart/shutdown

Usage:
    from meowcord.main import main
    main()  # Starts the bot with console interface
"""
