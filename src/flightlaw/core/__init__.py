"""Core infrastructure: property store, documents, configuration and logging."""
