"""
Configuration management for SightGuard.

- **app_configuration.py**: YAML-backed ``AppConfig`` with typed accessors for
  storage, external API and presentation settings.
"""
