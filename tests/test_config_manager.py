import json
import pytest

from flashquiz.config import SettingsManager
from flashquiz.services.ai_service import AIProvider


@pytest.mark.unit
def test_singleton():
    assert SettingsManager() is SettingsManager()


@pytest.mark.unit
def test_defaults_written_to_file(isolated_settings):
    settings = SettingsManager()
    assert settings.get('AI_PROVIDER') == 'openai'
    assert settings.get('FLIP_DURATION_MS') == 400
    assert json.loads(isolated_settings.read_text(encoding='utf-8'))['AI_PROVIDER'] == 'openai'


@pytest.mark.unit
def test_file_values_loaded_unknown_keys_ignored(isolated_settings):
    isolated_settings.write_text(json.dumps({'AI_PROVIDER': 'groq', 'SOMETHING_ELSE': 1}), encoding='utf-8')

    settings = SettingsManager()

    assert settings.get('AI_PROVIDER') == 'groq'
    assert 'SOMETHING_ELSE' not in settings.get_all()


@pytest.mark.unit
def test_corrupt_file_falls_back_to_defaults(isolated_settings):
    isolated_settings.write_text('{not json', encoding='utf-8')
    assert SettingsManager().get('AI_PROVIDER') == 'openai'


@pytest.mark.unit
def test_environment_overrides_file(isolated_settings, monkeypatch):
    isolated_settings.write_text(json.dumps({'FLIP_DURATION_MS': 250}), encoding='utf-8')
    monkeypatch.setenv('FLIP_DURATION_MS', '600')
    monkeypatch.setenv('AI_TEMPERATURE', '0.2')
    monkeypatch.setenv('AI_MAX_TOKENS', 'lots')

    settings = SettingsManager()

    assert settings.get('FLIP_DURATION_MS') == 600
    assert settings.get('AI_TEMPERATURE') == pytest.approx(0.2)
    assert settings.get('AI_MAX_TOKENS') == 300


@pytest.mark.unit
def test_set_persists_and_reset(isolated_settings):
    settings = SettingsManager()
    settings.set('AI_MODEL', 'gpt-4o')
    assert json.loads(isolated_settings.read_text(encoding='utf-8'))['AI_MODEL'] == 'gpt-4o'

    settings.reset('AI_MODEL')
    assert settings.get('AI_MODEL') == ''

    settings.set('FLIP_DURATION_MS', 100)
    settings.reset()
    assert settings.get('FLIP_DURATION_MS') == 400


@pytest.mark.unit
def test_api_key_comes_from_environment_only(isolated_settings, monkeypatch):
    settings = SettingsManager()
    assert settings.api_key('openai') is None

    monkeypatch.setenv('OPENAI_API_KEY', 'sk-env')
    assert settings.api_key('openai') == 'sk-env'
    assert settings.api_key('ollama') is None
    assert 'sk-env' not in isolated_settings.read_text(encoding='utf-8')


@pytest.mark.unit
def test_ai_config_uses_provider_default_model(monkeypatch):
    monkeypatch.setenv('GROQ_API_KEY', 'gsk-env')
    settings = SettingsManager()
    settings.set('AI_PROVIDER', 'groq')

    config = settings.ai_config()

    assert config.provider is AIProvider.GROQ
    assert config.model == 'llama-3.1-8b-instant'
    assert config.api_key == 'gsk-env'
    assert config.base_url is None


@pytest.mark.unit
def test_ai_config_unknown_provider_falls_back():
    settings = SettingsManager()
    settings.set('AI_PROVIDER', 'skynet')
    assert settings.ai_config().provider is AIProvider.OPENAI


@pytest.mark.unit
@pytest.mark.parametrize('value,expected', [(0, None), (-5, None), ('', None), (2.5, 2.5)])
def test_generation_timeout(value, expected):
    settings = SettingsManager()
    settings.set('GENERATION_TIMEOUT', value)
    assert settings.generation_timeout() == expected


@pytest.mark.unit
def test_env_seconds_falls_back_on_bad_value(monkeypatch):
    from flashquiz.config.settings import _env_seconds

    monkeypatch.setenv('GENERATION_TIMEOUT', 'soon')
    assert _env_seconds('GENERATION_TIMEOUT') == 0.0
    monkeypatch.setenv('GENERATION_TIMEOUT', '2.5')
    assert _env_seconds('GENERATION_TIMEOUT') == 2.5
    monkeypatch.delenv('GENERATION_TIMEOUT')
    assert _env_seconds('GENERATION_TIMEOUT', 7.0) == 7.0
