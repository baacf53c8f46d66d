from datetime import datetime

import pytest

from flashquiz.errors import (
    ErrorKind,
    GenerationFailure,
    MalformedResponseError,
    ValidationFailedError,
)
from flashquiz.models.card import Card, CardValidationError, WordType
from flashquiz.models.generated import GeneratedDefinition, GeneratedWordType, GenerationResult


@pytest.mark.unit
def test_card_create_trims_fields():
    card = Card.create('  ephemeral ', '\tLasting for a very short time\n')
    assert card.word == 'ephemeral'
    assert card.definition == 'Lasting for a very short time'
    assert card.word_type is None
    assert card.id is None
    assert card.uuid


@pytest.mark.unit
@pytest.mark.parametrize('word,definition', [('', 'x'), ('   ', 'x'), ('word', ''), ('word', ' \n ')])
def test_card_create_rejects_empty_fields(word, definition):
    with pytest.raises(CardValidationError):
        Card.create(word, definition)


@pytest.mark.unit
def test_word_type_abbreviations():
    expected = {
        'noun': 'n', 'verb': 'v', 'adjective': 'adj', 'adverb': 'adv',
        'preposition': 'prep', 'conjunction': 'conj', 'pronoun': 'pron',
        'interjection': 'interj', 'determiner': 'det', 'phrase': 'phr',
    }
    assert {word_type.value: word_type.abbreviation for word_type in WordType} == expected


@pytest.mark.unit
def test_word_type_colors_are_distinct():
    colors = [word_type.color for word_type in WordType]
    assert len(set(colors)) == len(colors)


@pytest.mark.unit
@pytest.mark.parametrize('raw,expected', [
    ('adverb', WordType.ADVERB),
    (' Adverb ', WordType.ADVERB),
    ('ADV.', WordType.ADVERB),
    ('n', WordType.NOUN),
    ('phrase', WordType.PHRASE),
    ('adverbish', None),
    ('', None),
    (None, None),
])
def test_word_type_parse(raw, expected):
    assert WordType.parse(raw) is expected


@pytest.mark.unit
def test_card_dict_roundtrip_keeps_identity():
    card = Card.create('run', 'To move fast on foot', WordType.VERB, created_at=datetime(2024, 5, 1, 9, 30))
    card.id = 7

    restored = Card.from_dict(card.to_dict())

    assert restored == card


@pytest.mark.unit
def test_card_from_dict_tolerates_blank_values():
    card = Card.from_dict({'id': '', 'word': 'run', 'definition': 'x', 'word_type': '', 'created_at': ''})
    assert card.id is None
    assert card.word_type is None
    assert isinstance(card.created_at, datetime)


@pytest.mark.unit
def test_generated_definition_from_payload():
    assert GeneratedDefinition.from_payload({}).definition is None
    assert GeneratedDefinition.from_payload({'definition': 'x'}).definition == 'x'
    with pytest.raises(MalformedResponseError):
        GeneratedDefinition.from_payload({'definition': ['x']})


@pytest.mark.unit
def test_generated_word_type_from_payload():
    generated = GeneratedWordType.from_payload({'wordType': 'verb', 'abbreviation': 'vb'})
    assert generated.word_type is WordType.VERB
    assert generated.abbreviation == 'v'


@pytest.mark.unit
def test_generated_word_type_errors():
    with pytest.raises(MalformedResponseError):
        GeneratedWordType.from_payload({'abbreviation': 'n'})
    with pytest.raises(MalformedResponseError):
        GeneratedWordType.from_payload({'wordType': 3})
    with pytest.raises(ValidationFailedError):
        GeneratedWordType.from_payload({'wordType': 'thingy'})


@pytest.mark.unit
def test_word_type_examples_are_valid_replies():
    for example in GeneratedWordType.examples():
        assert GeneratedWordType.from_payload(example).abbreviation == example['abbreviation']


@pytest.mark.unit
def test_generation_result():
    result = GenerationResult()
    assert result.is_empty
    assert result.abbreviation is None

    result = GenerationResult(word_type=WordType.ADVERB)
    assert not result.is_empty
    assert result.abbreviation == 'adv'


@pytest.mark.unit
def test_generation_failure_from_exception():
    failure = GenerationFailure.from_exception(ValidationFailedError("Unknown word type 'x'"), 'word_type')
    assert failure.kind is ErrorKind.VALIDATION_FAILED
    assert failure.operation == 'word_type'
    assert failure.description == "The language model returned an invalid value: Unknown word type 'x'"

    generic = GenerationFailure.from_exception(RuntimeError())
    assert generic.kind is ErrorKind.SESSION_UNAVAILABLE
    assert generic.message == 'RuntimeError'
