"""Business operations orchestrating the repositories."""
