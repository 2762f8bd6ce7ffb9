"""WhatsApp connection: credentials, transport socket and session lifecycle."""
