"""Shared helpers: logging and exceptions."""
