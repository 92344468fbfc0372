"""Command-line entry points for dualtreex."""
