"""WhatsApp Session Gateway - HTTP API over a WhatsApp Web session."""

__version__ = "1.0.0"
