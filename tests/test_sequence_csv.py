import pytest

from lookupkit import InvalidTermError, SourceUnavailableError


def test_sequence_stride(registry):
    assert registry.run("sequence", ["start=1 end=5 stride=2"]) == [1, 3, 5]


def test_sequence_range_and_flattening(registry):
    assert registry.run("sequence", ["1-3", "start=10 end=11"]) == [1, 2, 3, 10, 11]


def test_sequence_format(registry):
    assert registry.run("sequence", ["start=1 end=3 format=web%02d"]) == ["web01", "web02", "web03"]


def test_sequence_zero_stride_rejected(registry):
    with pytest.raises(InvalidTermError):
        registry.run("sequence", ["start=1 end=5 stride=0"])


def test_sequence_bad_format(registry):
    with pytest.raises(InvalidTermError) as exc:
        registry.run("sequence", ["start=1 end=2 format=plain"])
    assert "plain" in str(exc.value)


@pytest.fixture
def people_csv(tmp_path):
    path = tmp_path / "people.csv"
    path.write_text("alice,30,NYC\nbob,25,LA\nalice,99,SF\n", encoding="utf-8")
    return path


def test_csvfile_column(registry, people_csv):
    assert registry.run("csvfile", [f"alice file={people_csv} col=2"]) == ["NYC"]


def test_csvfile_default_column_is_second(registry, people_csv):
    assert registry.run("csvfile", [f"bob file={people_csv}"]) == ["25"]


def test_csvfile_missing_key_yields_nothing(registry, people_csv):
    terms = [f"carol file={people_csv}", f"bob file={people_csv} col=2"]
    assert registry.run("csvfile", terms) == ["LA"]


def test_csvfile_default_value(registry, people_csv):
    assert registry.run("csvfile", [f"carol file={people_csv} default=unknown"]) == ["unknown"]


def test_csvfile_column_out_of_range_dropped(registry, people_csv):
    assert registry.run("csvfile", [f"alice file={people_csv} col=7"]) == []


def test_csvfile_delimiter_and_options_fallback(registry, tmp_path):
    path = tmp_path / "hosts.tsv"
    path.write_text("web01\t10.0.0.1\tprod\n", encoding="utf-8")
    assert registry.run("csvfile", [f"web01 file={path} delimiter=TAB col=2"]) == ["prod"]
    assert registry.run("csvfile", ["web01"], options={"file": str(path), "delimiter": "\t", "col": 1}) == ["10.0.0.1"]


def test_csvfile_missing_file_and_incomplete_term(registry, tmp_path):
    missing = tmp_path / "none.csv"
    with pytest.raises(SourceUnavailableError) as exc:
        registry.run("csvfile", [f"alice file={missing}"])
    assert str(missing) in str(exc.value)
    with pytest.raises(InvalidTermError):
        registry.run("csvfile", ["alice col=2"])
