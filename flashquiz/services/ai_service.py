"""
AI Service - language model access for card generation.

Provides abstraction over multiple LLM providers (OpenAI, Anthropic, Groq and
local Ollama models) and long-lived generation sessions on top of them:
- Single request/response calls returning a decoded JSON object
- Streaming calls yielding partial JSON objects as text arrives
- Prewarming to cut first-call latency
"""

import asyncio
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

import aiohttp

from ..errors import GenerationTimeoutError, MalformedResponseError, SessionUnavailableError
from ..utils.logger import setup_logger
from ..utils.parsing import TextParser

logger = setup_logger(__name__)


class AIProvider(Enum):
    """Supported AI providers."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    OLLAMA = "ollama"  # Local models
    GROQ = "groq"  # Fast inference


@dataclass
class AIConfig:
    """Configuration for AI service."""
    provider: AIProvider = AIProvider.OPENAI
    model: str = "gpt-4o-mini"
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    temperature: float = 0.7
    max_tokens: int = 300
    timeout: int = 30


async def iter_lines(response: aiohttp.ClientResponse) -> AsyncIterator[str]:
    """Yield decoded, non-empty lines from a streaming HTTP response."""
    async for raw in response.content:
        line = raw.decode("utf-8", errors="replace").strip()
        if line:
            yield line


def parse_sse_line(line: str) -> Optional[Dict[str, Any]]:
    """
    Decode one server-sent event data line.

    Returns:
        The JSON payload, or None for comments, non-data fields and [DONE]
    """
    if not line.startswith("data:"):
        return None
    data = line[len("data:"):].strip()
    if not data or data == "[DONE]":
        return None
    try:
        return json.loads(data)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"Invalid event data: {data[:80]}") from e


class BaseAIProvider(ABC):
    """Abstract base class for AI providers."""

    def __init__(self, config: AIConfig):
        self.config = config
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        """Close the session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def prewarm(self) -> None:
        """Open the HTTP session ahead of the first request."""
        await self._get_session()

    def _require_api_key(self) -> None:
        if not self.config.api_key:
            raise SessionUnavailableError(f"No API key configured for {self.config.provider.value}")

    async def _post_json(self, url: str, payload: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """POST a JSON payload and decode the JSON reply."""
        session = await self._get_session()
        name = self.config.provider.value
        try:
            async with session.post(url, headers=headers, json=payload) as response:
                if response.status != 200:
                    error = await response.text()
                    raise SessionUnavailableError(f"{name} API error {response.status}: {error[:200]}")
                try:
                    return await response.json(content_type=None)
                except (json.JSONDecodeError, aiohttp.ContentTypeError) as e:
                    raise MalformedResponseError(f"{name} returned invalid JSON") from e
        except asyncio.TimeoutError as e:
            raise GenerationTimeoutError(f"{name} API timeout") from e
        except aiohttp.ClientError as e:
            raise SessionUnavailableError(f"Cannot reach {name}: {e}") from e

    async def _stream_lines(self, url: str, payload: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> AsyncIterator[str]:
        """POST a payload and yield the streamed reply line by line."""
        session = await self._get_session()
        name = self.config.provider.value
        try:
            async with session.post(url, headers=headers, json=payload) as response:
                if response.status != 200:
                    error = await response.text()
                    raise SessionUnavailableError(f"{name} API error {response.status}: {error[:200]}")
                async for line in iter_lines(response):
                    yield line
        except asyncio.TimeoutError as e:
            raise GenerationTimeoutError(f"{name} API timeout") from e
        except aiohttp.ClientError as e:
            raise SessionUnavailableError(f"Cannot reach {name}: {e}") from e

    @abstractmethod
    async def complete(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """Generate completion for the given prompt."""
        pass

    @abstractmethod
    def stream(self, prompt: str, system_prompt: Optional[str] = None) -> AsyncIterator[str]:
        """Generate a completion, yielding text deltas as they arrive."""
        pass


class OpenAIProvider(BaseAIProvider):
    """OpenAI API provider (also works with compatible APIs)."""

    DEFAULT_BASE_URL = "https://api.openai.com/v1"

    def _url(self) -> str:
        base_url = self.config.base_url or self.DEFAULT_BASE_URL
        return f"{base_url}/chat/completions"

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }

    def _payload(self, prompt: str, system_prompt: Optional[str], stream: bool) -> Dict[str, Any]:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        return {
            "model": self.config.model,
            "messages": messages,
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
            "stream": stream,
        }

    async def complete(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """Generate completion using the chat completions API."""
        self._require_api_key()
        data = await self._post_json(self._url(), self._payload(prompt, system_prompt, False), self._headers())
        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise MalformedResponseError("Completion reply has no message content") from e

    async def stream(self, prompt: str, system_prompt: Optional[str] = None) -> AsyncIterator[str]:
        """Stream completion deltas from server-sent events."""
        self._require_api_key()
        async for line in self._stream_lines(self._url(), self._payload(prompt, system_prompt, True), self._headers()):
            event = parse_sse_line(line)
            if not event:
                continue
            choices = event.get("choices") or []
            if not choices:
                continue
            delta = (choices[0].get("delta") or {}).get("content")
            if delta:
                yield delta


class GroqProvider(OpenAIProvider):
    """Groq fast inference provider (OpenAI-compatible)."""

    DEFAULT_BASE_URL = "https://api.groq.com/openai/v1"


class AnthropicProvider(BaseAIProvider):
    """Anthropic Claude API provider."""

    BASE_URL = "https://api.anthropic.com/v1"

    def _headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self.config.api_key or "",
            "anthropic-version": "2023-06-01",
            "Content-Type": "application/json",
        }

    def _payload(self, prompt: str, system_prompt: Optional[str], stream: bool) -> Dict[str, Any]:
        payload = {
            "model": self.config.model,
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
            "messages": [{"role": "user", "content": prompt}],
            "stream": stream,
        }
        if system_prompt:
            payload["system"] = system_prompt
        return payload

    async def complete(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """Generate completion using the messages API."""
        self._require_api_key()
        url = f"{self.config.base_url or self.BASE_URL}/messages"
        data = await self._post_json(url, self._payload(prompt, system_prompt, False), self._headers())
        try:
            return data["content"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise MalformedResponseError("Messages reply has no text content") from e

    async def stream(self, prompt: str, system_prompt: Optional[str] = None) -> AsyncIterator[str]:
        """Stream text deltas from content_block_delta events."""
        self._require_api_key()
        url = f"{self.config.base_url or self.BASE_URL}/messages"
        async for line in self._stream_lines(url, self._payload(prompt, system_prompt, True), self._headers()):
            event = parse_sse_line(line)
            if not event:
                continue
            if event.get("type") == "error":
                message = (event.get("error") or {}).get("message", "stream error")
                raise SessionUnavailableError(f"anthropic stream error: {message}")
            if event.get("type") != "content_block_delta":
                continue
            text = (event.get("delta") or {}).get("text")
            if text:
                yield text


class OllamaProvider(BaseAIProvider):
    """Ollama local model provider."""

    DEFAULT_BASE_URL = "http://localhost:11434"

    def _url(self, endpoint: str = "generate") -> str:
        base_url = self.config.base_url or self.DEFAULT_BASE_URL
        return f"{base_url}/api/{endpoint}"

    def _payload(self, prompt: str, system_prompt: Optional[str], stream: bool) -> Dict[str, Any]:
        payload = {
            "model": self.config.model,
            "prompt": prompt,
            "stream": stream,
            "options": {
                "temperature": self.config.temperature,
                "num_predict": self.config.max_tokens,
            },
        }
        if system_prompt:
            payload["system"] = system_prompt
        return payload

    async def prewarm(self) -> None:
        """Ask Ollama to load the model into memory."""
        await self._post_json(self._url(), {"model": self.config.model})

    async def complete(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """Generate completion using local Ollama."""
        data = await self._post_json(self._url(), self._payload(prompt, system_prompt, False))
        return data.get("response", "")

    async def stream(self, prompt: str, system_prompt: Optional[str] = None) -> AsyncIterator[str]:
        """Stream completion chunks from Ollama's newline-delimited JSON."""
        async for line in self._stream_lines(self._url(), self._payload(prompt, system_prompt, True)):
            try:
                chunk = json.loads(line)
            except json.JSONDecodeError as e:
                raise MalformedResponseError(f"Invalid stream chunk: {line[:80]}") from e
            if chunk.get("error"):
                raise SessionUnavailableError(f"ollama error: {chunk['error']}")
            text = chunk.get("response")
            if text:
                yield text
            if chunk.get("done"):
                break


PROVIDER_CLASSES = {
    AIProvider.OPENAI: OpenAIProvider,
    AIProvider.ANTHROPIC: AnthropicProvider,
    AIProvider.OLLAMA: OllamaProvider,
    AIProvider.GROQ: GroqProvider,
}


class GenerationSession:
    """
    A long-lived conversation context for one kind of generation task.

    Every request carries the session's fixed instructions as the system
    prompt, the task text, and one or more JSON examples that steer the
    shape of the reply.
    """

    def __init__(self, provider: BaseAIProvider, instructions: Sequence[str]):
        self.provider = provider
        self.instructions: List[str] = list(instructions)
        self._prewarmed: bool = False

    @property
    def system_prompt(self) -> str:
        return "\n".join(self.instructions)

    @staticmethod
    def build_prompt(task: str, examples: Sequence[Dict[str, Any]]) -> str:
        """Embed the task and JSON examples into one prompt."""
        lines = [task]
        if examples:
            lines.append("Here is an example of the format:" if len(examples) == 1 else "Examples:")
            lines.extend(json.dumps(example, ensure_ascii=False) for example in examples)
        lines.append("Respond with a single JSON object shaped like the example and nothing else.")
        return "\n".join(lines)

    async def prewarm(self) -> None:
        """Warm up the provider once. Failures are logged, never raised."""
        if self._prewarmed:
            return
        self._prewarmed = True
        try:
            await self.provider.prewarm()
        except Exception as e:
            logger.debug("Prewarm failed for %s: %s", self.provider.config.provider.value, e)

    async def respond(self, task: str, examples: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Send one request and decode the JSON reply.

        Raises:
            GenerationError: On transport failure or undecodable output
        """
        prompt = self.build_prompt(task, examples)
        text = await self.provider.complete(prompt, self.system_prompt)
        try:
            return TextParser.extract_json(text)
        except ValueError as e:
            raise MalformedResponseError(str(e)) from e

    async def stream_response(
        self,
        task: str,
        examples: Sequence[Dict[str, Any]],
        fields: Sequence[str],
    ) -> AsyncIterator[Dict[str, Optional[str]]]:
        """
        Stream a request, yielding partial objects as text arrives.

        A partial is yielded whenever one of the named string fields changes.
        Once the stream ends the full reply must decode as JSON.

        Raises:
            GenerationError: On transport failure or undecodable output
        """
        prompt = self.build_prompt(task, examples)
        buffer = ""
        last: Dict[str, Optional[str]] = {}

        deltas = self.provider.stream(prompt, self.system_prompt)
        try:
            async for delta in deltas:
                buffer += delta
                partial = TextParser.partial_fields(buffer, fields)
                if partial != last and any(value is not None for value in partial.values()):
                    last = partial
                    yield partial
        finally:
            # Releases the HTTP response when the consumer stops early
            await deltas.aclose()

        try:
            final = TextParser.extract_json(buffer)
        except ValueError as e:
            raise MalformedResponseError(str(e)) from e

        complete = {name: final.get(name) for name in fields}
        if complete != last:
            yield complete


class AIService:
    """
    Entry point to the configured language model.

    Owns the provider (and its HTTP session) and hands out generation
    sessions that share it.
    """

    def __init__(self, config: Optional[AIConfig] = None):
        """
        Initialize AI service.

        Args:
            config: AI configuration. If None, read from SettingsManager.
        """
        if config is None:
            from ..config import SettingsManager
            config = SettingsManager().ai_config()
        self.config = config
        self._provider: Optional[BaseAIProvider] = None

    def _get_provider(self) -> BaseAIProvider:
        """Get or create the appropriate provider."""
        if self._provider is None:
            provider_class = PROVIDER_CLASSES.get(self.config.provider, OpenAIProvider)
            self._provider = provider_class(self.config)
        return self._provider

    def create_session(self, instructions: Sequence[str]) -> GenerationSession:
        """Start a generation session with fixed instructions."""
        return GenerationSession(self._get_provider(), instructions)

    async def close(self) -> None:
        """Close the AI service and release resources."""
        if self._provider:
            await self._provider.close()
            self._provider = None

    @property
    def is_configured(self) -> bool:
        """Check if AI service is properly configured."""
        if self.config.provider == AIProvider.OLLAMA:
            return True  # Ollama doesn't need API key
        return bool(self.config.api_key)


def create_ai_service(
    provider: str = "openai",
    model: Optional[str] = None,
    api_key: Optional[str] = None
) -> AIService:
    """
    Create an AI service with specified configuration.

    Args:
        provider: Provider name (openai, anthropic, ollama, groq)
        model: Model name (uses default if None)
        api_key: API key (uses environment if None)

    Returns:
        Configured AIService instance
    """
    from ..config import SettingsManager

    settings = SettingsManager()
    provider_enum = {
        "openai": AIProvider.OPENAI,
        "anthropic": AIProvider.ANTHROPIC,
        "ollama": AIProvider.OLLAMA,
        "groq": AIProvider.GROQ,
    }.get(provider.lower(), AIProvider.OPENAI)

    config = settings.ai_config()
    if config.provider != provider_enum:
        config.base_url = None
    config.provider = provider_enum
    config.model = model or SettingsManager.MODEL_DEFAULTS[provider_enum.value]
    config.api_key = api_key or settings.api_key(provider_enum.value)

    return AIService(config)
