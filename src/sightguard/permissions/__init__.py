"""Role whitelist deciding who may run restricted commands."""
