"""Сервисы: задачи генерации, хранилища, Green API."""
