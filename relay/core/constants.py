"""Константы для WhatsApp AI Relay.

Централизованное хранилище всех магических чисел и строк.
"""

# === Сервис ===
SERVICE_NAME = "whatsapp_ai_relay"
SERVICE_VERSION = "1.0.0"

# === Задачи ===
IMAGE_FILE_EXTENSION = ".png"

# === Ошибки задач (отдаются клиенту в поле error) ===
ERROR_UNSUPPORTED_TASK_TYPE = "Unsupported task type"
ERROR_NO_IMAGE_DATA = "No image data"
ERROR_FILE_WRITE_FAILED = "Failed to write file"
ERROR_TASK_NOT_FOUND = "Task not found"

# === Webhook ===
WEBHOOK_BEARER_PREFIX = "Bearer "
EDITED_MESSAGE_SUFFIX = "_edited_"

# === Команды ===
CHAT_COMMAND_PREFIX = "# "
CLEAR_COMMANDS = frozenset({"/clear", "/reset"})
