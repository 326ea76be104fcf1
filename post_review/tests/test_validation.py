import pytest

from post_review.validation import MISSING_FIELDS_MESSAGE, is_blank, parse_tags, validate_required_fields

POST_FIELDS = ("brand", "model", "description", "tags")


def _complete_fields():
    return {
        "brand": "Toyota",
        "model": "Corolla",
        "description": "Well maintained, excellent condition",
        "tags": ["sedan", "economical", "reliable"],
    }


def test_json_array_string_matches_literal_list():
    assert parse_tags('["sedan", "économique"]') == parse_tags(["sedan", "économique"])
    assert parse_tags('["sedan", "économique"]') == ["sedan", "économique"]


def test_comma_separated_tags_are_trimmed_in_order():
    assert parse_tags(" sedan,économique ,  reliable") == ["sedan", "économique", "reliable"]


def test_malformed_json_falls_back_to_comma_split():
    assert parse_tags('["sedan", "reliable"') == ['["sedan"', '"reliable"']


def test_json_scalar_string_falls_back_to_comma_split():
    assert parse_tags("42") == ["42"]
    assert parse_tags('"sedan, coupe"') == ['"sedan', 'coupe"']


def test_non_string_values_pass_through():
    assert parse_tags(None) is None
    assert parse_tags(7) == 7


@pytest.mark.parametrize("raw", ["", "   ", ",", "{not json", "\x00,é"])
def test_parse_tags_never_raises(raw):
    assert isinstance(parse_tags(raw), list)


def test_complete_submission_passes():
    result = validate_required_fields(_complete_fields(), POST_FIELDS, ["img"], require_media=True)

    assert result.ok
    assert result.status == "success"


@pytest.mark.parametrize("field", POST_FIELDS)
@pytest.mark.parametrize("missing_value", [None, "", "   ", []])
def test_missing_or_empty_field_fails(field, missing_value):
    fields = _complete_fields()
    fields[field] = missing_value

    result = validate_required_fields(fields, POST_FIELDS, ["img"], require_media=True)

    assert result.status == "error"
    assert result.message == MISSING_FIELDS_MESSAGE
    assert f"Missing field: {field}." in result.warnings


@pytest.mark.parametrize("field", POST_FIELDS)
def test_absent_field_fails(field):
    fields = _complete_fields()
    del fields[field]

    assert not validate_required_fields(fields, POST_FIELDS, ["img"], require_media=True).ok


@pytest.mark.parametrize("media", [None, []])
def test_missing_media_fails_when_required(media):
    result = validate_required_fields(_complete_fields(), POST_FIELDS, media, require_media=True)

    assert result.status == "error"
    assert "At least one image is required." in result.warnings


def test_media_not_required_by_default():
    assert validate_required_fields(_complete_fields(), POST_FIELDS).ok


def test_list_of_blank_tags_is_blank():
    assert is_blank(parse_tags(""))
    assert is_blank(["", "  "])
    assert not is_blank(["sedan", ""])


def test_deeply_nested_tag_string_falls_back_to_comma_split():
    raw = "[" * 100000

    assert parse_tags(raw) == [raw]
