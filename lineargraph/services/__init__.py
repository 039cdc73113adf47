"""Runtime wiring shared by CLI commands."""
