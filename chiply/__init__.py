"""Chiply: buy-in and cash-out ledger for live poker club sessions."""

__version__ = "1.0.0"
