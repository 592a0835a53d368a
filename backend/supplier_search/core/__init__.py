"""Core exceptions and logging setup."""
