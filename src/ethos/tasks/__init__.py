"""Post-commit event handling (outbox) for the tournament core."""
