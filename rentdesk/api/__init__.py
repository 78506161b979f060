"""HTTP API for agent identity edits."""
