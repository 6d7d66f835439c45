"""Общие компоненты: ошибки и trace context."""
