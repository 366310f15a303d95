"""
Discord integration for Meowcord.

- **meow_runtime.py**: Builds the shared store, schedulers and enforcement
  handler from the application configuration

- **cogs/**: Py-Cord cogs wiring Discord events and slash commands to the runtime
"""
