"""LangChain text-generation backend client."""
import asyncio
import logging

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage

from relaybot.config import settings
from relaybot.errors import BackendError, BackendTimeout

logger = logging.getLogger(__name__)


def create_llm(
    model: str | None = None,
    temperature: float | None = None,
    api_key: str | None = None,
    **kwargs,
) -> BaseChatModel:
    """
    Create a LangChain chat model based on config.

    Args:
        model: Override model name (defaults to settings.LLM_MODEL)
        temperature: Override temperature (defaults to settings.LLM_TEMPERATURE)
        api_key: Override API key (defaults to settings.LLM_API_KEY)
        **kwargs: Additional kwargs passed to the LLM constructor
    """
    model = model or settings.LLM_MODEL
    temperature = temperature if temperature is not None else settings.LLM_TEMPERATURE
    api_key = api_key if api_key is not None else settings.LLM_API_KEY
    kwargs.setdefault("max_tokens", settings.LLM_MAX_TOKENS)
    provider = settings.LLM_PROVIDER.lower()

    if provider == "openai":
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            model=model,
            temperature=temperature,
            api_key=api_key,
            **kwargs,
        )

    elif provider == "anthropic":
        from langchain_anthropic import ChatAnthropic

        return ChatAnthropic(
            model=model,
            temperature=temperature,
            api_key=api_key,
            **kwargs,
        )

    elif provider == "openai_compatible":
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            model=model,
            temperature=temperature,
            api_key=api_key or "not-needed",
            base_url=settings.LLM_BASE_URL,
            **kwargs,
        )

    else:
        raise ValueError(f"Unknown LLM provider: {provider}")


def _content_text(content) -> str:
    """Flatten a chat model's content (string or content blocks) to text."""
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class BackendClient:
    """Stateless prompt-in, text-out client with a bounded wait."""

    def __init__(self, llm: BaseChatModel | None = None, timeout: float | None = None):
        self.llm = llm or create_llm()
        self.timeout = timeout if timeout is not None else settings.LLM_TIMEOUT

    async def generate(self, prompt: str, timeout: float | None = None) -> str:
        """Generate a completion for *prompt*.

        Raises:
            BackendTimeout: no answer within the timeout.
            BackendError: quota, upstream or empty-response failures.
        """
        limit = timeout if timeout is not None else self.timeout
        try:
            response = await asyncio.wait_for(
                self.llm.ainvoke([HumanMessage(content=prompt)]), timeout=limit
            )
        except asyncio.TimeoutError as e:
            raise BackendTimeout(f"no response within {limit:g}s") from e
        except Exception as e:
            raise BackendError(f"generation request failed: {e}") from e

        text = _content_text(response.content)
        if not text.strip():
            raise BackendError("generation backend returned an empty response")
        return text


_backend_client: BackendClient | None = None


def get_backend_client() -> BackendClient:
    """Get or create backend client instance."""
    global _backend_client
    if _backend_client is None:
        _backend_client = BackendClient()
    return _backend_client
