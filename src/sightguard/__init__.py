"""
SightGuard - Image Moderation Bot for Discord

SightGuard scores images with the Sightengine API and turns those scores into
allow/flag verdicts using per-server thresholds.

Core Components:

- **Analysis**: Score extraction from Sightengine responses, the verdict
  engine and the parser for user-entered threshold values
- **Thresholds**: Per-guild thresholds with global and compiled-in fallback,
  plus an append-only audit log of every change
- **Permissions**: Per-guild role whitelist for restricted commands
- **Services**: HTTP clients for Sightengine and reverse image search
- **Bot**: py-cord slash command cogs and embed rendering
"""
