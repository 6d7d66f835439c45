"""Парсер команд из текста сообщений WhatsApp.

Грамматика - упорядоченный список правил (предикат, построитель команды).
Первое сработавшее правило побеждает, иначе команда UNKNOWN.
Новая команда = новое правило в COMMAND_RULES.
"""

from collections.abc import Callable
from dataclasses import dataclass

from relay.core.constants import CHAT_COMMAND_PREFIX, CLEAR_COMMANDS
from relay.core.enums import CommandType


@dataclass(frozen=True)
class Command:
    """Распознанная команда."""

    type: CommandType
    prompt: str = ""


CommandRule = tuple[Callable[[str], bool], Callable[[str], Command]]

COMMAND_RULES: list[CommandRule] = [
    (
        lambda text: text.startswith(CHAT_COMMAND_PREFIX),
        lambda text: Command(CommandType.OPENAI_CHAT, text[len(CHAT_COMMAND_PREFIX) :].strip()),
    ),
    (
        lambda text: text.lower() in CLEAR_COMMANDS,
        lambda text: Command(CommandType.CLEAR_CONVERSATION),
    ),
]


def parse_command(text: str | None, rules: list[CommandRule] | None = None) -> Command:
    """Распознать команду в тексте сообщения.

    Args:
        text: Текст сообщения (может быть None)
        rules: Правила вместо COMMAND_RULES

    Returns:
        Command; для нераспознанного текста type=UNKNOWN и prompt=текст

    Examples:
        >>> parse_command("# what time is it")
        Command(type=<CommandType.OPENAI_CHAT: 'openai_chat'>, prompt='what time is it')
        >>> parse_command("hello").type
        <CommandType.UNKNOWN: 'unknown'>

    """
    trimmed = (text or "").strip()

    for matches, build in rules if rules is not None else COMMAND_RULES:
        if matches(trimmed):
            return build(trimmed)

    return Command(CommandType.UNKNOWN, trimmed)
