import pandas as pd
import pytest

import run


@pytest.fixture
def dictionary(tmp_path):
    p = tmp_path / "terms.txt"
    p.write_text("a\nab\nbab\nbc\nbca\nc\ncaa\n", encoding="utf-8")
    return p


def test_scan_plain_text(tmp_path, dictionary):
    text = tmp_path / "doc.txt"
    text.write_text("abccab\n", encoding="utf-8")
    out = tmp_path / "out" / "matches.csv"

    run.main(["--dictionary", str(dictionary), "--text", str(text), "--out", str(out), "--no-normalize"])

    df = pd.read_csv(out)
    assert df["pattern"].tolist() == ["a", "ab", "bc", "c", "c", "a", "ab"]
    assert df["end_position"].tolist() == [0, 1, 2, 2, 3, 4, 5]


def test_scan_normalized_with_describe(tmp_path, dictionary):
    text = tmp_path / "doc.txt"
    text.write_text("c a a caa", encoding="utf-8")
    out = tmp_path / "matches.csv"

    run.main(["--dictionary", str(dictionary), "--text", str(text), "--out", str(out), "--describe"])

    df = pd.read_csv(out)
    assert df["pattern"].tolist() == ["C", "A", "A", "C", "A", "CAA", "A"]


def test_scan_csv_column(tmp_path, dictionary):
    rows = tmp_path / "rows.csv"
    rows.write_text("id,body\n1,xbcax\n2,zzz\n", encoding="utf-8")
    out = tmp_path / "rows_ac.csv"

    run.main(["--dictionary", str(dictionary), "--text", str(rows), "--text-col", "body",
              "--out", str(out), "--longest-only"])

    df = pd.read_csv(out, keep_default_na=False)
    assert df["_AC_TERMS"].tolist() == ["BCA", ""]


def test_missing_column_exits_2(tmp_path, dictionary):
    rows = tmp_path / "rows.csv"
    rows.write_text("id,body\n1,abc\n", encoding="utf-8")
    with pytest.raises(SystemExit) as exc:
        run.main(["--dictionary", str(dictionary), "--text", str(rows), "--text-col", "nope",
                  "--out", str(tmp_path / "x.csv")])
    assert exc.value.code == 2


def test_missing_input_file(tmp_path, dictionary):
    with pytest.raises(FileNotFoundError):
        run.main(["--dictionary", str(dictionary), "--text", str(tmp_path / "nope.txt")])


def test_describe_in_csv_mode(tmp_path, dictionary, caplog):
    rows = tmp_path / "rows.csv"
    rows.write_text("id,body\n1,caa\n", encoding="utf-8")
    with caplog.at_level("INFO"):
        run.main(["--dictionary", str(dictionary), "--text", str(rows), "--text-col", "body",
                  "--out", str(tmp_path / "rows_ac.csv"), "--describe"])
    assert "States:" in caplog.text
    assert "failure_link" in caplog.text
