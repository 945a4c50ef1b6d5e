"""Core data types shared across SightGuard."""
