"""
Discord bot layer for SightGuard.

- **cogs/**: Slash command groups for analysis, thresholds, permissions and
  general utility commands.
"""
