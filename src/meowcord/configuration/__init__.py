"""
Configuration management for Meowcord.

- **app_configuration.py**: File-locked YAML configuration loader with
  environment overrides for the meow channel and owner ids. Falls back to
  defaults on missing or malformed values.
"""
