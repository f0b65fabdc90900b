"""mealsync: meal-planning backend with live multi-client synchronization."""

__version__ = "0.1.0"
