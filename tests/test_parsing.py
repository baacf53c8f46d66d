import pytest

from flashquiz.utils.parsing import TextParser


@pytest.mark.unit
def test_clean_field():
    assert TextParser.clean_field(None) == ''
    assert TextParser.clean_field('  café ') == 'café'


@pytest.mark.unit
def test_collapse_whitespace():
    assert TextParser.collapse_whitespace(' a \n\t b  ') == 'a b'


@pytest.mark.unit
def test_extract_json_plain_and_fenced():
    assert TextParser.extract_json('{"a": 1}') == {'a': 1}
    assert TextParser.extract_json('```json\n{"a": 1}\n```') == {'a': 1}
    assert TextParser.extract_json('Here you go: {"a": {"b": 2}} Hope it helps!') == {'a': {'b': 2}}


@pytest.mark.unit
@pytest.mark.parametrize('text', ['', 'no json here', '{"a": ', '[1, 2]', '{"a": 1,}'])
def test_extract_json_rejects(text):
    with pytest.raises(ValueError):
        TextParser.extract_json(text)


@pytest.mark.unit
def test_partial_field_grows_with_buffer():
    reply = '{"definition": "Lasting for a short time"}'
    values = [TextParser.partial_string_field(reply[:end], 'definition') for end in range(len(reply) + 1)]

    assert values[0] is None
    started = [value for value in values if value is not None]
    assert started[0] == ''
    assert started[-1] == 'Lasting for a short time'
    for earlier, later in zip(started, started[1:]):
        assert later.startswith(earlier)


@pytest.mark.unit
def test_partial_field_decodes_escapes():
    buffer = '{"definition": "Say \\"hi\\"\\nthen \\u00e9"}'
    assert TextParser.partial_string_field(buffer, 'definition') == 'Say "hi"\nthen é'


@pytest.mark.unit
def test_partial_field_holds_back_cut_escapes():
    assert TextParser.partial_string_field('{"definition": "a\\', 'definition') == 'a'
    assert TextParser.partial_string_field('{"definition": "a\\u00', 'definition') == 'a'


@pytest.mark.unit
def test_partial_fields_reports_missing_as_none():
    result = TextParser.partial_fields('{"wordType": "noun", "abbr', ['wordType', 'abbreviation'])
    assert result == {'wordType': 'noun', 'abbreviation': None}
