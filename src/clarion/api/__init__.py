"""HTTP API for the Clarion application."""
