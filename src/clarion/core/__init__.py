"""Core configuration for the Clarion application."""
