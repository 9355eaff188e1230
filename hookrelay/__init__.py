"""hookrelay: capture, inspect and forward inbound webhooks."""

__version__ = "0.1.0"
