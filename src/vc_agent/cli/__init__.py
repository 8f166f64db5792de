"""Command-line interface for vc-agent."""
