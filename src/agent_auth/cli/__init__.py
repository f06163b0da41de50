"""Command-line interface for agent-auth."""
