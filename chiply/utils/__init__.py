"""Shared helpers: logging, display formatting, hand estimates."""
