import pandas as pd
import pytest

from dictmatch.normalize import (
    ensure_unique_columns, load_csv_any, load_dictionary, normalize_headers, normalize_text, pick_col, read_lines,
    split_variants,
)


def test_normalize_text():
    assert normalize_text("  new   york,  city ") == "NEW YORK CITY"
    assert normalize_text(None) == ""
    assert normalize_text(float("nan")) == ""
    assert normalize_text(42) == "42"


def test_split_variants():
    assert split_variants("aspirin; ibuprofen | paracetamol") == ["ASPIRIN", "IBUPROFEN", "PARACETAMOL"]
    assert split_variants("a,b", normalize=False) == ["a", "b"]
    assert split_variants(float("nan")) == []
    assert split_variants("") == []


def test_headers_and_pick_col():
    df = pd.DataFrame(columns=["Item Description", "id", "ID"])
    df = ensure_unique_columns(normalize_headers(df))
    assert list(df.columns) == ["ITEM_DESCRIPTION", "ID", "ID_1"]
    assert pick_col(df, ["item description"]) == "ITEM_DESCRIPTION"
    assert pick_col(df, ["missing"]) is None
    with pytest.raises(KeyError, match="pick_col"):
        pick_col(df, ["missing"], must=True, label="text")


def test_read_lines(tmp_path):
    p = tmp_path / "terms.txt"
    p.write_text("he\n\n  she \nhis\n", encoding="utf-8")
    assert read_lines(p) == ["he", "she", "his"]


def test_load_dictionary_txt(tmp_path):
    p = tmp_path / "terms.txt"
    p.write_text("he\nshe\nhe\n", encoding="utf-8")
    assert load_dictionary(p) == [("HE", {"key": "he"}), ("SHE", {"key": "she"})]
    assert [t for t, _ in load_dictionary(p, normalize=False)] == ["he", "she"]


def test_load_dictionary_csv(tmp_path):
    p = tmp_path / "terms.csv"
    p.write_text("Code,Term\nN01,\"aspirin;acetylsalicylic acid\"\nN02,ibuprofen\nN03,aspirin\n", encoding="utf-8")
    got = dict(load_dictionary(p))
    assert got == {
        "ASPIRIN": {"key": "N01"},
        "ACETYLSALICYLIC ACID": {"key": "N01"},
        "IBUPROFEN": {"key": "N02"},
    }


def test_load_dictionary_csv_explicit_cols(tmp_path):
    p = tmp_path / "terms.csv"
    p.write_text("label,ref\nfoo,1\nbar,2\n", encoding="utf-8")
    got = load_dictionary(p, pattern_col="label", key_col="ref")
    assert got == [("FOO", {"key": "1"}), ("BAR", {"key": "2"})]
    with pytest.raises(KeyError):
        load_dictionary(p, pattern_col="nope")


def test_load_dictionary_numeric_patterns(tmp_path):
    p = tmp_path / "codes.csv"
    p.write_text("key,pattern\nA,1234\nB,5678\nC,\nD,007\n", encoding="utf-8")
    assert load_dictionary(p) == [
        ("1234", {"key": "A"}), ("5678", {"key": "B"}), ("007", {"key": "D"}),
    ]


def test_load_csv_any_as_text(tmp_path):
    p = tmp_path / "codes.csv"
    p.write_text("code,n\n007,1\n,2\n", encoding="utf-8")
    df = load_csv_any(p, as_text=True)
    assert df.loc[0, "code"] == "007"
    assert pd.isna(df.loc[1, "code"])
