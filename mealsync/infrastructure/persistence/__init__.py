"""Persistence adapters and the record store factory."""
