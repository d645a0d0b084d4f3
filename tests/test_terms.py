import pytest

from lookupkit.errors import InvalidTermError
from lookupkit.terms import MAX_SEQUENCE_LENGTH, parse_csv_term, parse_password_term, parse_sequence, parse_term


def test_parse_term_leading_positional_and_pairs():
    parsed = parse_term("alice file=users.csv col=2 junk a=b=c")
    assert parsed.positional == "alice"
    assert parsed.params == {"file": "users.csv", "col": "2"}
    assert parsed.extras == ["junk", "a=b=c"]


def test_parse_term_leading_keeps_pair_like_first_token():
    parsed = parse_term("key=1 col=3")
    assert parsed.positional == "key=1"
    assert parsed.params == {"col": "3"}


def test_parse_term_without_leading():
    parsed = parse_term("start=2 5-9 end=4", leading=False)
    assert parsed.positional == "5-9"
    assert parsed.params == {"start": "2", "end": "4"}
    assert parsed.range() == (5, 9)


def test_param_helpers_are_lenient():
    parsed = parse_term("x length=abc size=12")
    assert parsed.param_int("length", 16) == 16
    assert parsed.param_int("size", 0) == 12
    assert parsed.param_int("missing") is None
    assert parsed.param_str("missing", "d") == "d"


def test_empty_term():
    parsed = parse_term("   ")
    assert parsed.positional is None
    assert parsed.params == {}
    assert parsed.range() is None


def test_sequence_defaults_and_keys():
    spec = parse_sequence("")
    assert (spec.start, spec.end, spec.stride, spec.format) == (1, 1, 1, None)
    spec = parse_sequence("start=1 end=5 stride=2")
    assert list(spec.values()) == [1, 3, 5]


def test_sequence_range_shorthand():
    assert list(parse_sequence("1-3").values()) == [1, 2, 3]


def test_sequence_explicit_keys_win_over_shorthand():
    spec = parse_sequence("1-3 start=4 end=6")
    assert list(spec.values()) == [4, 5, 6]
    spec = parse_sequence("start=4 end=6 1-3")
    assert list(spec.values()) == [4, 5, 6]


def test_sequence_unparsable_integers_keep_defaults():
    spec = parse_sequence("start=x end=3 stride=?")
    assert list(spec.values()) == [1, 2, 3]


def test_sequence_zero_stride_rejected():
    with pytest.raises(InvalidTermError) as exc:
        parse_sequence("start=1 end=5 stride=0")
    assert "stride=0" in str(exc.value)


def test_sequence_negative_stride_counts_down():
    assert list(parse_sequence("start=5 end=1 stride=-2").values()) == [5, 3, 1]


def test_sequence_count():
    assert list(parse_sequence("start=10 count=3 stride=5").values()) == [10, 15, 20]
    assert list(parse_sequence("start=10 count=0").values()) == []


def test_sequence_start_after_end_is_empty():
    assert list(parse_sequence("start=5 end=1").values()) == []


def test_sequence_too_long_rejected():
    with pytest.raises(InvalidTermError) as exc:
        parse_sequence("start=1 end=10000000000")
    assert "end=10000000000" in str(exc.value)
    with pytest.raises(InvalidTermError):
        parse_sequence(f"start=0 count={MAX_SEQUENCE_LENGTH + 1}")
    assert parse_sequence(f"start=0 count={MAX_SEQUENCE_LENGTH}").count() == MAX_SEQUENCE_LENGTH
    assert parse_sequence("start=5 end=1 stride=-2").count() == 3


def test_csv_term():
    spec = parse_csv_term("alice file=/tmp/u.csv col=2 delimiter=;")
    assert spec.key == "alice"
    assert spec.filename == "/tmp/u.csv"
    assert spec.column == 2
    assert spec.delimiter == ";"
    assert spec.encoding == "utf-8"


def test_csv_term_defaults_and_fallback():
    spec = parse_csv_term("bob", fallback={"file": "data.csv", "col": 3, "delimiter": "TAB"})
    assert spec.filename == "data.csv"
    assert spec.column == 3
    assert spec.delimiter == "\t"
    spec = parse_csv_term("bob file=x.csv col=oops", fallback={"col": 3})
    assert spec.filename == "x.csv"
    assert spec.column == 1


def test_csv_term_requires_key_and_file():
    with pytest.raises(InvalidTermError):
        parse_csv_term("alice col=2")
    with pytest.raises(InvalidTermError):
        parse_csv_term("")


def test_password_term():
    spec = parse_password_term("/tmp/pw length=24 chars=digits,punctuation")
    assert spec.path == "/tmp/pw"
    assert spec.length == 24
    assert spec.chars == "digits,punctuation"
    spec = parse_password_term("/tmp/pw length=lots")
    assert spec.length is None
