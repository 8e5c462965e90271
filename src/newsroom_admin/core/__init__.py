"""Configuration, security helpers and the console error taxonomy."""
