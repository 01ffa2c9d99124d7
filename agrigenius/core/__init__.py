"""Core configuration, logging and session context."""
