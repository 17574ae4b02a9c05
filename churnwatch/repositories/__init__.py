"""Persistence adapters for customers and the intervention log."""
