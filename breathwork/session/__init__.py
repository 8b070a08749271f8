"""Session module - phase state machine for one breathing session."""
