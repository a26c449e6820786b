"""Image upload service and event-driven thumbnail worker."""

__version__ = "1.0.0"
