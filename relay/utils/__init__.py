"""Утилиты: логирование, фоновые задачи, обработка текста."""
