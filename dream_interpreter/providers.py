import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import ChatOpenAI

from .config import Settings
from .errors import ProviderConfigurationError, ProviderError
from .models import ContextBundle, InterpretationResult
from .normalizer import coerce_symbols, normalize_response
from .prompts import compose_prompt

logger = logging.getLogger(__name__)

PROVIDER_REGISTRY: Dict[str, Type["DreamProvider"]] = {}


def register_provider(cls: Type["DreamProvider"]) -> Type["DreamProvider"]:
    PROVIDER_REGISTRY[cls.name] = cls
    return cls


class DreamProvider(ABC):
    """One backend able to interpret a dream. Stateless per call."""

    name = "base"
    api_key_setting = ""
    api_key_env = ""

    def __init__(self, settings: Settings):
        api_key = getattr(settings, self.api_key_setting, None) if self.api_key_setting else None
        if self.api_key_setting and not api_key:
            raise ProviderConfigurationError(self.name, f"{self.api_key_env} is not set")
        self.settings = settings
        self.api_key = api_key

    @abstractmethod
    async def interpret(
        self,
        dream_text: str,
        context: Optional[ContextBundle] = None,
        persona: Optional[str] = None,
        user_name: Optional[str] = None,
    ) -> InterpretationResult:
        """Raises ProviderError when no interpretation can be produced."""


def message_text(message: Any) -> str:
    """Flatten a chat model reply into plain text."""
    content = getattr(message, "content", message)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type", "text") == "text":
                parts.append(str(part.get("text", "")))
        return "".join(parts)
    return str(content or "")


class ChatModelProvider(DreamProvider):
    """A provider backed by a LangChain chat model."""

    def __init__(self, settings: Settings):
        super().__init__(settings)
        self.llm = self.build_model()

    @abstractmethod
    def build_model(self) -> BaseChatModel:
        ...

    async def interpret(
        self,
        dream_text: str,
        context: Optional[ContextBundle] = None,
        persona: Optional[str] = None,
        user_name: Optional[str] = None,
    ) -> InterpretationResult:
        prompt = compose_prompt(
            dream_text,
            context=context,
            persona=persona,
            user_name=user_name,
            default_persona=self.settings.active_persona,
        )
        logger.debug("[%s] prompt length: %d characters", self.name, len(prompt))

        try:
            message = await self.llm.ainvoke(prompt)
        except Exception as e:
            raise ProviderError(self.name, f"request failed: {e}") from e

        text = message_text(message)
        if not text.strip():
            raise ProviderError(self.name, "empty response")

        logger.debug("[%s] raw output: %s...", self.name, text[:150])
        return normalize_response(text)


@register_provider
class GeminiProvider(ChatModelProvider):
    name = "gemini"
    api_key_setting = "gemini_api_key"
    api_key_env = "GEMINI_API_KEY"

    def build_model(self) -> BaseChatModel:
        params = self.settings.model_params
        return ChatGoogleGenerativeAI(
            model=self.settings.gemini_model,
            google_api_key=self.api_key,
            temperature=params.temperature,
            top_k=params.top_k,
            max_output_tokens=params.max_output_tokens,
            response_mime_type="application/json",
            timeout=self.settings.provider_timeout,
            max_retries=self.settings.provider_max_retries,
        )


@register_provider
class GroqProvider(ChatModelProvider):
    """Llama on Groq through its OpenAI-compatible endpoint."""

    name = "groq"
    api_key_setting = "groq_api_key"
    api_key_env = "GROQ_API_KEY"

    def build_model(self) -> BaseChatModel:
        params = self.settings.model_params
        return ChatOpenAI(
            model=self.settings.groq_model,
            api_key=self.api_key,
            base_url=self.settings.groq_base_url,
            temperature=params.temperature,
            max_tokens=params.max_output_tokens,
            timeout=self.settings.provider_timeout,
            max_retries=self.settings.provider_max_retries,
            model_kwargs={"response_format": {"type": "json_object"}},
        )


@register_provider
class OpenAIProvider(ChatModelProvider):
    name = "openai"
    api_key_setting = "openai_api_key"
    api_key_env = "OPENAI_API_KEY"

    def build_model(self) -> BaseChatModel:
        params = self.settings.model_params
        return ChatOpenAI(
            model=self.settings.openai_model,
            api_key=self.api_key,
            temperature=params.temperature,
            max_tokens=params.max_output_tokens,
            timeout=self.settings.provider_timeout,
            max_retries=self.settings.provider_max_retries,
            model_kwargs={"response_format": {"type": "json_object"}},
        )


@register_provider
class ClaudeProvider(DreamProvider):
    """Stub backend. Returns a canned answer until a real integration lands."""

    name = "claude"
    api_key_setting = "claude_api_key"
    api_key_env = "CLAUDE_API_KEY"

    async def interpret(
        self,
        dream_text: str,
        context: Optional[ContextBundle] = None,
        persona: Optional[str] = None,
        user_name: Optional[str] = None,
    ) -> InterpretationResult:
        return InterpretationResult(
            interpretation=f"[Claude] Interpreting this dream: {dream_text[:50]}...",
            energy=70,
            symbols=coerce_symbols(["demo"]),
        )


def build_provider_chain(
    settings: Settings,
    registry: Optional[Dict[str, Type[DreamProvider]]] = None,
) -> List[DreamProvider]:
    """
    Instantiate the configured providers in priority order.
    Providers without credentials are left out of the chain.
    """
    registry = PROVIDER_REGISTRY if registry is None else registry
    chain: List[DreamProvider] = []
    for name in settings.provider_chain:
        provider_cls = registry.get(name)
        if provider_cls is None:
            logger.warning("Unknown provider '%s' in chain, skipping", name)
            continue
        try:
            chain.append(provider_cls(settings))
        except ProviderConfigurationError as e:
            logger.warning("Provider '%s' disabled: %s", name, e)
    logger.info("Provider chain: %s", [provider.name for provider in chain] or "offline only")
    return chain


def available_providers(settings: Settings) -> List[str]:
    """Registered providers whose credentials are present."""
    return [
        name
        for name, provider_cls in PROVIDER_REGISTRY.items()
        if not provider_cls.api_key_setting or getattr(settings, provider_cls.api_key_setting, None)
    ]
