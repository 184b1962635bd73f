"""Outbound HTTP transport used by the dispatcher."""
