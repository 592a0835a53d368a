"""Supplier search services."""
