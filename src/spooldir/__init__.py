"""Directory-based work queue that relays job files as outbound requests."""

__version__ = "0.3.0"
