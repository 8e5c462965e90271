"""HTTP API for the newsroom admin console."""
