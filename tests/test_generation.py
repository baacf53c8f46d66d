import asyncio
import pytest

from flashquiz.errors import ErrorKind, SessionUnavailableError
from flashquiz.models.card import WordType
from flashquiz.services.generation import DEFINITION_INSTRUCTIONS, GenerationOrchestrator, GenerationPhase
from tests.conftest import FakeProvider


ADVERB_REPLY = '{"wordType": "adverb", "abbreviation": "adv"}'
DEFINITION_DELTAS = ['{"definition": "In a ', 'fast way, without', ' waiting."}']


@pytest.mark.unit
def test_starts_idle(make_orchestrator):
    orchestrator = make_orchestrator(FakeProvider(), FakeProvider())
    assert orchestrator.phase is GenerationPhase.IDLE
    assert orchestrator.latest_result is None
    assert orchestrator.last_error is None
    assert orchestrator.errors == []


@pytest.mark.unit
def test_can_generate_requires_non_blank_word(make_orchestrator):
    orchestrator = make_orchestrator(FakeProvider(), FakeProvider())
    assert not orchestrator.can_generate('')
    assert not orchestrator.can_generate('   ')
    assert not orchestrator.can_generate(None)
    assert orchestrator.can_generate(' quickly ')

    orchestrator.phase = GenerationPhase.RUNNING
    assert not orchestrator.can_generate('quickly')


@pytest.mark.unit
def test_classify_quickly_as_adverb(make_orchestrator):
    word_types = FakeProvider(completion=ADVERB_REPLY)
    orchestrator = make_orchestrator(FakeProvider(), word_types)

    result = asyncio.run(orchestrator.classify('quickly'))

    assert result.word_type is WordType.ADVERB
    assert result.abbreviation == 'adv'
    assert result.definition is None
    assert orchestrator.phase is GenerationPhase.SUCCEEDED
    assert orchestrator.last_error is None
    assert "'quickly'" in word_types.prompts[0]
    assert 'Examples:' in word_types.prompts[0]


@pytest.mark.unit
def test_classify_uses_canonical_abbreviation(make_orchestrator):
    word_types = FakeProvider(completion='Sure! {"wordType": "Adverb", "abbreviation": "ad."}')
    orchestrator = make_orchestrator(FakeProvider(), word_types)

    result = asyncio.run(orchestrator.classify('quickly'))

    assert result.word_type is WordType.ADVERB
    assert result.abbreviation == 'adv'


@pytest.mark.unit
def test_unknown_word_type_fails_validation(make_orchestrator):
    word_types = FakeProvider(completion='{"wordType": "adverbish", "abbreviation": "advb"}')
    orchestrator = make_orchestrator(FakeProvider(), word_types)

    result = asyncio.run(orchestrator.classify('quickly'))

    assert result.word_type is None
    assert orchestrator.phase is GenerationPhase.FAILED
    assert orchestrator.last_error.kind is ErrorKind.VALIDATION_FAILED
    assert orchestrator.last_error.operation == 'word_type'


@pytest.mark.unit
def test_non_json_reply_is_malformed(make_orchestrator):
    word_types = FakeProvider(completion='I think it is an adverb.')
    orchestrator = make_orchestrator(FakeProvider(), word_types)

    asyncio.run(orchestrator.classify('quickly'))

    assert orchestrator.phase is GenerationPhase.FAILED
    assert orchestrator.last_error.kind is ErrorKind.MALFORMED_RESPONSE


@pytest.mark.unit
def test_definition_streams_and_replaces_text(make_orchestrator):
    orchestrator = make_orchestrator(FakeProvider(deltas=DEFINITION_DELTAS), FakeProvider())
    seen = []
    orchestrator.on_update(lambda o: seen.append(o.latest_result.definition))

    result = asyncio.run(orchestrator.generate_definition('quickly'))

    definitions = [text for text in seen if text is not None]
    assert definitions[0] == 'In a '
    assert definitions[-1] == 'In a fast way, without waiting.'
    # Each update replaces the text with a longer version of the same reply
    for earlier, later in zip(definitions, definitions[1:]):
        assert later.startswith(earlier)
    assert result.definition == 'In a fast way, without waiting.'
    assert result.word_type is None
    assert orchestrator.phase is GenerationPhase.SUCCEEDED


@pytest.mark.unit
def test_phase_sequence_reported_to_observers(make_orchestrator):
    orchestrator = make_orchestrator(
        FakeProvider(deltas=DEFINITION_DELTAS),
        FakeProvider(completion=ADVERB_REPLY),
    )
    phases = []
    orchestrator.on_update(lambda o: phases.append(o.phase))

    asyncio.run(orchestrator.generate_card('quickly'))

    assert phases[0] is GenerationPhase.RUNNING
    assert phases[-1] is GenerationPhase.SUCCEEDED
    assert all(phase is GenerationPhase.RUNNING for phase in phases[:-1])


@pytest.mark.unit
def test_generate_card_fills_both_fields(make_orchestrator):
    orchestrator = make_orchestrator(
        FakeProvider(deltas=DEFINITION_DELTAS),
        FakeProvider(completion=ADVERB_REPLY),
    )

    result = asyncio.run(orchestrator.generate_card('quickly'))

    assert result.definition == 'In a fast way, without waiting.'
    assert result.word_type is WordType.ADVERB
    assert orchestrator.errors == []


@pytest.mark.unit
def test_generate_card_keeps_definition_when_classification_fails(make_orchestrator):
    orchestrator = make_orchestrator(
        FakeProvider(deltas=DEFINITION_DELTAS),
        FakeProvider(completion='{"wordType": "gibberish"}'),
    )

    result = asyncio.run(orchestrator.generate_card('quickly'))

    assert result.definition == 'In a fast way, without waiting.'
    assert result.word_type is None
    assert orchestrator.phase is GenerationPhase.FAILED
    assert len(orchestrator.errors) == 1
    assert orchestrator.last_error.operation == 'word_type'


@pytest.mark.unit
def test_generate_card_records_both_failures(make_orchestrator):
    orchestrator = make_orchestrator(
        FakeProvider(error=SessionUnavailableError('offline')),
        FakeProvider(completion='not json at all'),
    )

    asyncio.run(orchestrator.generate_card('quickly'))

    kinds = {failure.operation: failure.kind for failure in orchestrator.errors}
    assert kinds == {
        'definition': ErrorKind.SESSION_UNAVAILABLE,
        'word_type': ErrorKind.MALFORMED_RESPONSE,
    }
    assert orchestrator.last_error in orchestrator.errors
    assert orchestrator.phase is GenerationPhase.FAILED


@pytest.mark.unit
def test_stream_without_definition_is_malformed(make_orchestrator):
    orchestrator = make_orchestrator(FakeProvider(deltas=['{"meaning": "fast"}']), FakeProvider())

    result = asyncio.run(orchestrator.generate_definition('quickly'))

    assert result.definition is None
    assert orchestrator.last_error.kind is ErrorKind.MALFORMED_RESPONSE
    assert orchestrator.last_error.operation == 'definition'


@pytest.mark.unit
def test_blank_definition_is_malformed(make_orchestrator):
    orchestrator = make_orchestrator(FakeProvider(deltas=['{"definition": "   "}']), FakeProvider())

    asyncio.run(orchestrator.generate_definition('ephemeral'))

    assert orchestrator.phase is GenerationPhase.FAILED
    assert orchestrator.last_error.kind is ErrorKind.MALFORMED_RESPONSE
    assert orchestrator.last_error.operation == 'definition'


@pytest.mark.unit
def test_unexpected_exception_is_recorded_not_raised(make_orchestrator):
    orchestrator = make_orchestrator(FakeProvider(), FakeProvider(error=RuntimeError('boom')))

    asyncio.run(orchestrator.classify('quickly'))

    assert orchestrator.phase is GenerationPhase.FAILED
    assert orchestrator.last_error.kind is ErrorKind.SESSION_UNAVAILABLE
    assert 'boom' in orchestrator.last_error.description


@pytest.mark.unit
def test_timeout_is_reported(make_orchestrator):
    slow = FakeProvider(completion=ADVERB_REPLY, delay=1.0)
    orchestrator = make_orchestrator(FakeProvider(), slow, timeout=0.05)

    result = asyncio.run(orchestrator.classify('quickly'))

    assert result.word_type is None
    assert orchestrator.phase is GenerationPhase.FAILED
    assert orchestrator.last_error.kind is ErrorKind.TIMEOUT


@pytest.mark.unit
def test_non_positive_timeout_means_no_timeout(make_orchestrator):
    orchestrator = make_orchestrator(FakeProvider(), FakeProvider(), timeout=0)
    assert orchestrator.timeout is None


@pytest.mark.unit
def test_new_attempt_clears_previous_error(make_orchestrator):
    word_types = FakeProvider(completion='nonsense')
    orchestrator = make_orchestrator(FakeProvider(), word_types)

    asyncio.run(orchestrator.classify('quickly'))
    assert orchestrator.last_error is not None

    word_types.completion = ADVERB_REPLY
    asyncio.run(orchestrator.classify('quickly'))
    assert orchestrator.last_error is None
    assert orchestrator.errors == []
    assert orchestrator.phase is GenerationPhase.SUCCEEDED


class GatedProvider(FakeProvider):
    """Holds replies for the word 'first' until released."""

    def __init__(self):
        super().__init__()
        self.release = None

    async def stream(self, prompt, system_prompt=None):
        if "'first'" in prompt:
            yield '{"definition": "stale'
            await self.release.wait()
            yield ' text"}'
        else:
            yield '{"definition": "fresh text"}'

    async def complete(self, prompt, system_prompt=None):
        if "'first'" in prompt:
            await self.release.wait()
            return '{"wordType": "noun"}'
        return ADVERB_REPLY


@pytest.mark.unit
def test_superseded_definition_is_discarded(make_orchestrator):
    provider = GatedProvider()
    orchestrator = make_orchestrator(provider, FakeProvider())

    async def scenario():
        provider.release = asyncio.Event()
        first = asyncio.create_task(orchestrator.generate_definition('first'))
        for _ in range(100):
            if orchestrator.latest_result and orchestrator.latest_result.definition == 'stale':
                break
            await asyncio.sleep(0)

        await orchestrator.generate_definition('second')
        provider.release.set()
        await first

    asyncio.run(scenario())

    assert orchestrator.latest_result.definition == 'fresh text'
    assert orchestrator.phase is GenerationPhase.SUCCEEDED
    assert orchestrator.errors == []


@pytest.mark.unit
def test_superseded_classification_is_discarded(make_orchestrator):
    provider = GatedProvider()
    orchestrator = make_orchestrator(FakeProvider(), provider)

    async def scenario():
        provider.release = asyncio.Event()
        first = asyncio.create_task(orchestrator.classify('first'))
        await asyncio.sleep(0)
        await orchestrator.classify('second')
        provider.release.set()
        await first

    asyncio.run(scenario())

    assert orchestrator.latest_result.word_type is WordType.ADVERB
    assert orchestrator.phase is GenerationPhase.SUCCEEDED


@pytest.mark.unit
def test_cancellation_is_recorded_as_superseded(make_orchestrator):
    orchestrator = make_orchestrator(FakeProvider(), FakeProvider(completion=ADVERB_REPLY, delay=1.0))

    async def scenario():
        task = asyncio.create_task(orchestrator.classify('quickly'))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())

    assert orchestrator.last_error.kind is ErrorKind.SUPERSEDED
    assert orchestrator.phase is GenerationPhase.FAILED


@pytest.mark.unit
def test_prewarm_warms_each_session_once(make_orchestrator):
    definitions = FakeProvider()
    word_types = FakeProvider()
    orchestrator = make_orchestrator(definitions, word_types)

    asyncio.run(orchestrator.prewarm())
    asyncio.run(orchestrator.prewarm())

    assert definitions.prewarm_calls == 1
    assert word_types.prewarm_calls == 1
    assert orchestrator.phase is GenerationPhase.IDLE


@pytest.mark.unit
def test_prewarm_failure_is_silent(make_orchestrator):
    failing = FakeProvider(prewarm_error=SessionUnavailableError('offline'))
    orchestrator = make_orchestrator(failing, FakeProvider())

    asyncio.run(orchestrator.prewarm())

    assert orchestrator.phase is GenerationPhase.IDLE
    assert orchestrator.last_error is None


@pytest.mark.unit
def test_failing_observer_does_not_break_generation(make_orchestrator):
    orchestrator = make_orchestrator(FakeProvider(), FakeProvider(completion=ADVERB_REPLY))

    def broken(_):
        raise RuntimeError('observer bug')

    orchestrator.on_update(broken)
    result = asyncio.run(orchestrator.classify('quickly'))

    assert result.word_type is WordType.ADVERB


@pytest.mark.unit
def test_from_settings_uses_configured_timeout_and_provider(monkeypatch):
    from flashquiz.config import SettingsManager
    from flashquiz.services.ai_service import GroqProvider

    monkeypatch.setenv('GROQ_API_KEY', 'gsk-test')
    settings = SettingsManager()
    settings.set('AI_PROVIDER', 'groq')
    settings.set('GENERATION_TIMEOUT', 12.5)

    orchestrator = GenerationOrchestrator.from_settings()

    assert orchestrator.timeout == 12.5
    assert isinstance(orchestrator.definition_session.provider, GroqProvider)
    assert orchestrator.definition_session.provider is orchestrator.word_type_session.provider
    assert orchestrator.definition_session.instructions == DEFINITION_INSTRUCTIONS
