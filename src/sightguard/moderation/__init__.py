"""
Moderation facade for SightGuard.

- **moderation_engine.py**: ``ModerationEngine`` wires the threshold store, the
  audit log and the API clients together behind one API used by the cogs.
"""
