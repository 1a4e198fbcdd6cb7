"""External capability adapters."""
