"""Provider Registry для WhatsApp AI Relay.

Централизованное хранилище providers с lazy loading: provider создаётся
при первом запросе, поэтому без ключа Replicate сервис стартует и умеет
всё, кроме видео.
"""

from collections.abc import Callable
from typing import Any

from relay.config import Settings, settings as default_settings
from relay.core.enums import ProviderCapability, ProviderType
from relay.providers.base import ClosableProvider, ImageProvider, TextProvider, VideoProvider
from relay.shared.errors import ProviderUnavailableError
from relay.utils.logging import get_logger

logger = get_logger()

ProviderFactory = Callable[[], Any]

DEFAULT_PROVIDERS: dict[ProviderCapability, str] = {
    ProviderCapability.IMAGE: ProviderType.GEMINI.value,
    ProviderCapability.VIDEO: ProviderType.REPLICATE.value,
    ProviderCapability.TEXT: ProviderType.OPENAI.value,
}


class ProviderRegistry:
    """Registry для управления AI providers.

    - Фабрики регистрируются по имени и списку возможностей
    - Экземпляр создаётся при первом get() и кешируется
    - Неизвестное имя провайдера -> провайдер по умолчанию для возможности
    """

    def __init__(self, defaults: dict[ProviderCapability, str] | None = None) -> None:
        """Инициализировать пустой registry.

        Args:
            defaults: Провайдер по умолчанию для каждой возможности

        """
        self._factories: dict[str, ProviderFactory] = {}
        self._capabilities: dict[str, set[ProviderCapability]] = {}
        self._instances: dict[str, Any] = {}
        self.defaults = dict(defaults or DEFAULT_PROVIDERS)

    def register_factory(
        self,
        name: str,
        factory: ProviderFactory,
        capabilities: set[ProviderCapability],
    ) -> None:
        """Зарегистрировать фабрику provider.

        Args:
            name: Название provider (например, "openai")
            factory: Callable без аргументов, создающий provider
            capabilities: Что provider умеет генерировать

        Raises:
            ValueError: Если provider с таким именем уже зарегистрирован

        """
        if name in self._factories or name in self._instances:
            msg = f"Provider '{name}' уже зарегистрирован"
            raise ValueError(msg)

        self._factories[name] = factory
        self._capabilities[name] = set(capabilities)
        logger.debug("Provider зарегистрирован", name=name, capabilities=sorted(c.value for c in capabilities))

    def register(self, name: str, provider: Any, capabilities: set[ProviderCapability]) -> None:
        """Зарегистрировать готовый экземпляр provider (используется в тестах)."""
        self.register_factory(name, lambda: provider, capabilities)

    def resolve_name(self, capability: ProviderCapability, requested: str | None) -> str:
        """Выбрать имя provider для возможности.

        Args:
            capability: Нужная возможность
            requested: Имя из запроса (может быть None или неизвестным)

        Returns:
            Имя зарегистрированного provider

        """
        if requested and capability in self._capabilities.get(requested, set()):
            return requested

        default = self.defaults[capability]
        if requested:
            logger.warning(
                "Provider не поддерживает операцию, используется провайдер по умолчанию",
                requested=requested,
                capability=capability.value,
                default=default,
            )
        return default

    def get(self, capability: ProviderCapability, requested: str | None = None) -> Any:
        """Получить provider (lazy loading).

        Raises:
            ProviderUnavailableError: Provider не зарегистрирован или не смог инициализироваться

        """
        name = self.resolve_name(capability, requested)

        if name in self._instances:
            return self._instances[name]

        factory = self._factories.get(name)
        if factory is None:
            raise ProviderUnavailableError(name, "не зарегистрирован")

        try:
            provider = factory()
        except ValueError as e:
            raise ProviderUnavailableError(name, str(e)) from e

        self._instances[name] = provider
        logger.info("Provider создан", name=name, provider_type=type(provider).__name__)
        return provider

    def get_image_provider(self, requested: str | None = None) -> ImageProvider:
        return self.get(ProviderCapability.IMAGE, requested)

    def get_video_provider(self, requested: str | None = None) -> VideoProvider:
        return self.get(ProviderCapability.VIDEO, requested)

    def get_text_provider(self, requested: str | None = None) -> TextProvider:
        return self.get(ProviderCapability.TEXT, requested)

    def list_providers(self) -> dict[str, list[str]]:
        """Список зарегистрированных providers и их возможностей."""
        return {name: sorted(c.value for c in caps) for name, caps in self._capabilities.items()}

    async def cleanup_all(self) -> None:
        """Закрыть HTTP клиенты всех созданных providers."""
        for name, provider in self._instances.items():
            if isinstance(provider, ClosableProvider):
                try:
                    await provider.cleanup()
                except Exception:
                    logger.exception("Ошибка cleanup provider", name=name)
        self._instances.clear()


def create_provider_registry(config: Settings | None = None) -> ProviderRegistry:
    """Создать registry со всеми встроенными providers.

    Args:
        config: Настройки приложения

    Returns:
        ProviderRegistry с фабриками OpenAI, Gemini и Replicate

    """
    from relay.providers.gemini import GeminiProvider
    from relay.providers.openai import OpenAIProvider
    from relay.providers.replicate import ReplicateProvider

    config = config or default_settings
    registry = ProviderRegistry()

    registry.register_factory(
        ProviderType.OPENAI.value,
        lambda: OpenAIProvider(config=config),
        {ProviderCapability.IMAGE, ProviderCapability.TEXT},
    )
    registry.register_factory(
        ProviderType.GEMINI.value,
        lambda: GeminiProvider(config=config),
        {ProviderCapability.IMAGE},
    )
    registry.register_factory(
        ProviderType.REPLICATE.value,
        lambda: ReplicateProvider(config=config),
        {ProviderCapability.VIDEO},
    )

    return registry
