"""Developer scripts runnable with ``python -m mealsync.scripts.<name>``."""
