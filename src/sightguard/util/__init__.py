"""
Utility helpers for SightGuard.

- **logger.py**: Centralized logging configuration with colored console output
  through prompt_toolkit, rotating session log files and suppression of noisy
  library loggers.
"""
