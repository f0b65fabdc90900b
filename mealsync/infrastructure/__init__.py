"""Infrastructure adapters: notifier, persistence, auth, configuration."""
