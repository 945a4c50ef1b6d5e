"""
Discord presentation helpers.

- **embeds.py**: Builds the embeds for analysis results, threshold listings,
  audit history and error replies.
"""
