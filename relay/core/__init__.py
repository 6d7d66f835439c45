"""WhatsApp AI Relay - Core module.

Ядро приложения: константы, enum'ы, зависимости.
"""
