"""Device shadow topics, update documents, message handlers, publish bookkeeping and retry backoff."""

__version__ = "0.1.0"