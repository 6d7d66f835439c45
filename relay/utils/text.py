"""Очистка пользовательского текста перед отправкой провайдерам."""

import re

from relay.shared.errors import EmptyPromptError, PromptTooLongError

# Управляющие символы кроме \t \n \v \f \r; эмодзи и RTL текст не трогаем
CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0e-\x1f\x7f]")
WHITESPACE_RE = re.compile(r"\s+")


def sanitize_text(text: str | None) -> str:
    """Обрезать пробелы, убрать управляющие символы, схлопнуть пробельные последовательности."""
    if not text:
        return ""
    text = CONTROL_CHARS_RE.sub("", text.strip())
    return WHITESPACE_RE.sub(" ", text).strip()


def sanitize_prompt(prompt: str, max_length: int) -> str:
    """Очистить промпт и проверить его длину.

    Args:
        prompt: Исходный промпт
        max_length: Максимальная длина после очистки

    Returns:
        Очищенный промпт

    Raises:
        EmptyPromptError: Промпт пуст после очистки
        PromptTooLongError: Промпт длиннее max_length

    """
    sanitized = sanitize_text(prompt)
    if not sanitized:
        raise EmptyPromptError
    if len(sanitized) > max_length:
        raise PromptTooLongError(len(sanitized), max_length)
    return sanitized
