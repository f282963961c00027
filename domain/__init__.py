"""Pure domain entities and rules for the storefront sales core (no I/O)."""
