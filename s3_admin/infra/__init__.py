"""Infrastructure adapters: storage provider, logging, metrics and tracing."""
