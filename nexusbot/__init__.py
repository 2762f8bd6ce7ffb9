"""nexusbot — WhatsApp AI assistant bridge."""

__version__ = "0.1.0"
