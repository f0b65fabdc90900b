"""Shared domain building blocks (errors, ports)."""
