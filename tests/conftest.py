import asyncio
import os
import pytest
from typing import Any, Dict, Iterable, Optional
from unittest.mock import MagicMock

os.environ.setdefault('LOG_LEVEL', 'WARNING')

from flashquiz.config import SettingsManager
from flashquiz.services.ai_service import AIConfig, AIProvider, BaseAIProvider, GenerationSession
from flashquiz.services.card_service import CardService
from flashquiz.services.generation import (
    DEFINITION_INSTRUCTIONS,
    WORD_TYPE_INSTRUCTIONS,
    GenerationOrchestrator,
)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    # Keep the singleton away from the real settings.json and the shell env
    for key in SettingsManager.DEFAULTS:
        monkeypatch.delenv(key, raising=False)
    for names in SettingsManager.API_KEY_VARS.values():
        for name in names:
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(SettingsManager, 'DEFAULT_SETTINGS_FILE', str(tmp_path / 'settings.json'))
    SettingsManager.reset_instance()
    yield tmp_path / 'settings.json'
    SettingsManager.reset_instance()


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / 'cards.db')


@pytest.fixture
def card_service(db_path):
    service = CardService(db_path=db_path)
    service.load()
    return service


class FakeProvider(BaseAIProvider):
    """Provider that replays canned text instead of calling a model."""

    def __init__(
        self,
        deltas: Iterable[str] = (),
        completion: str = '',
        error: Optional[Exception] = None,
        delay: float = 0.0,
        prewarm_error: Optional[Exception] = None,
    ):
        super().__init__(AIConfig(provider=AIProvider.OPENAI, api_key='test-key'))
        self.deltas = list(deltas)
        self.completion = completion
        self.error = error
        self.delay = delay
        self.prewarm_error = prewarm_error
        self.prompts = []
        self.system_prompts = []
        self.prewarm_calls = 0

    async def prewarm(self) -> None:
        self.prewarm_calls += 1
        if self.prewarm_error:
            raise self.prewarm_error

    async def complete(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        self.prompts.append(prompt)
        self.system_prompts.append(system_prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.completion

    async def stream(self, prompt: str, system_prompt: Optional[str] = None):
        self.prompts.append(prompt)
        self.system_prompts.append(system_prompt)
        for delta in self.deltas:
            if self.delay:
                await asyncio.sleep(self.delay)
            yield delta
        if self.error:
            raise self.error


@pytest.fixture
def fake_provider_cls():
    return FakeProvider


@pytest.fixture
def make_orchestrator():
    def _make(definition_provider: BaseAIProvider, word_type_provider: BaseAIProvider, timeout: Optional[float] = None):
        return GenerationOrchestrator(
            definition_session=GenerationSession(definition_provider, DEFINITION_INSTRUCTIONS),
            word_type_session=GenerationSession(word_type_provider, WORD_TYPE_INSTRUCTIONS),
            timeout=timeout,
        )
    return _make


@pytest.fixture
def mock_page():
    page = MagicMock()
    page.overlay = []
    return page


@pytest.fixture
def sample_cards() -> Dict[str, Any]:
    return {
        'ephemeral': ('Lasting for a very short time', 'adjective'),
        'quickly': ('In a fast way', 'adverb'),
        'run': ('To move fast on foot', 'verb'),
    }
