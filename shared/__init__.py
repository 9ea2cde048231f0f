"""Shared helpers used by the command-line tools."""
