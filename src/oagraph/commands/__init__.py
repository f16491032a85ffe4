"""Built-in CLI commands (``generate``, ``inspect``, ``config``)."""
