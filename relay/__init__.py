"""WhatsApp AI Relay."""
