"""Storage backends implementing ``ThresholdBackend``."""
