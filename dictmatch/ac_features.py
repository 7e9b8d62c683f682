# ac_features.py
import argparse
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd

from .ac import Automaton, Match, build
from .normalize import (
    normalize_headers, ensure_unique_columns, pick_col, normalize_text, load_csv_any, load_dictionary
)

logger = logging.getLogger(__name__)

TEXT_COL_CANDIDATES = ["TEXT", "DESCRIPTION", "ITEM DESCRIPTION", "CONTENT", "BODY"]
FEATURE_COLS = ["_AC_HAS_MATCH", "_AC_N_MATCHES", "_AC_TERMS", "_AC_KEYS"]

# ---- helpers -----------------------------------------------------------------
_WORD = set("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_")

def word_boundary_ok(s: str, l: int, r: int) -> bool:
    """True when s[l:r] is not glued to a word character on either side."""
    left_ok  = (l == 0) or (s[l-1] not in _WORD)
    right_ok = (r == len(s)) or (s[r:r+1] not in _WORD)
    return left_ok and right_ok

def longest_non_overlapping(matches: Iterable[Match]) -> List[Match]:
    """Leftmost-longest greedy pick; result ordered by start."""
    ordered = sorted(matches, key=lambda m: (m.start, -len(m.pattern)))
    out, cur_end = [], -1
    for m in ordered:
        if m.start > cur_end:
            out.append(m)
            cur_end = m.end_position
    return out

def matches_frame(automaton: Automaton, text: Sequence[Any]) -> pd.DataFrame:
    """One row per match, in scan order."""
    rows = [
        {"pattern": m.pattern, "start": m.start, "end_position": m.end_position}
        for m in automaton.finditer(text)
    ]
    return pd.DataFrame(rows, columns=["pattern", "start", "end_position"])

def automaton_frame(automaton: Automaton) -> pd.DataFrame:
    """Tabular dump of every state and its links, indexed by node id."""
    labels = [n.label for n in automaton]
    rows = []
    for n in automaton:
        rows.append({
            "node": n.index,
            "label": n.label,
            "terminal": n.is_terminal,
            "parent": labels[n.parent] if n.parent is not None else None,
            "failure_link": labels[n.failure_link],
            "output_link": labels[n.output_link] if n.output_link is not None else None,
            "children": "".join(map(str, n.children)),
        })
    return pd.DataFrame(rows).set_index("node")

# ---- feature generation ------------------------------------------------------
def add_match_features(
    df: pd.DataFrame,
    automaton: Automaton,
    *,
    text_col: Optional[str] = None,
    payloads: Optional[Dict[str, Dict[str, Any]]] = None,
    word_boundary: bool = False,
    longest_only: bool = False,
    normalize: bool = True,
) -> pd.DataFrame:
    """
    Scan one text column and append:
      _AC_HAS_MATCH  0/1
      _AC_N_MATCHES  kept match count
      _AC_TERMS      matched patterns, `|`-joined in first-seen order
      _AC_KEYS       payload keys of matched patterns, `|`-joined
    """
    col = pick_col(df, [text_col] if text_col else TEXT_COL_CANDIDATES, must=True, label="text")
    payloads = payloads or {}

    rows = []
    for raw in df[col].tolist():
        txt = normalize_text(raw) if normalize else ("" if pd.isna(raw) else str(raw))
        hits = list(automaton.finditer(txt))
        if word_boundary:
            hits = [m for m in hits if word_boundary_ok(txt, *m.span)]
        if longest_only:
            hits = longest_non_overlapping(hits)

        terms = [m.pattern for m in hits]
        keys = [payloads[t]["key"] for t in terms if "key" in payloads.get(t, {})]
        rows.append({
            "_AC_HAS_MATCH": int(bool(hits)),
            "_AC_N_MATCHES": len(hits),
            "_AC_TERMS": "|".join(dict.fromkeys(terms)),
            "_AC_KEYS": "|".join(dict.fromkeys(keys)),
        })

    # assigned positionally; the caller's index may repeat labels
    out = df.drop(columns=[c for c in FEATURE_COLS if c in df.columns])
    for c in FEATURE_COLS:
        out[c] = [r[c] for r in rows]
    logger.info("AC features: %d rows, %d with matches", len(out), int(out["_AC_HAS_MATCH"].sum()))
    return out

def annotate_csv(
    text_in: Path,
    dictionary_in: Path,
    out_path: Path,
    *,
    text_col: Optional[str] = None,
    pattern_col: Optional[str] = None,
    key_col: Optional[str] = None,
    word_boundary: bool = False,
    longest_only: bool = False,
    normalize: bool = True,
    encoding: str = "utf-8",
) -> pd.DataFrame:
    patterns = load_dictionary(dictionary_in, pattern_col=pattern_col, key_col=key_col,
                               normalize=normalize, encoding=encoding)
    automaton = build(p for p, _ in patterns)
    df = ensure_unique_columns(normalize_headers(load_csv_any(text_in, encoding=encoding)))
    out = add_match_features(df, automaton, text_col=text_col, payloads=dict(patterns),
                             word_boundary=word_boundary, longest_only=longest_only,
                             normalize=normalize)
    Path(out_path).parent.mkdir(parents=True, exist_ok=True)
    out.to_csv(out_path, index=False)
    return out

def main(argv=None):
    ap = argparse.ArgumentParser(description="Add Aho–Corasick dictionary match features to a CSV.")
    ap.add_argument("--text-in", required=True)
    ap.add_argument("--dictionary-in", required=True)
    ap.add_argument("--out", required=True)
    ap.add_argument("--text-col", default=None, help="Text column (case/spacing tolerant).")
    ap.add_argument("--pattern-col", default=None, help="Dictionary pattern column.")
    ap.add_argument("--key-col", default=None, help="Dictionary key column reported in _AC_KEYS.")
    ap.add_argument("--word-boundary", action="store_true", help="Drop matches glued to word characters.")
    ap.add_argument("--longest-only", action="store_true", help="Keep leftmost-longest non-overlapping matches.")
    ap.add_argument("--no-normalize", dest="normalize", action="store_false", help="Match raw text, no uppercasing.")
    ap.add_argument("--encoding", default="utf-8")
    args = ap.parse_args(argv)

    out = annotate_csv(
        Path(args.text_in), Path(args.dictionary_in), Path(args.out),
        text_col=args.text_col, pattern_col=args.pattern_col, key_col=args.key_col,
        word_boundary=args.word_boundary, longest_only=args.longest_only,
        normalize=args.normalize, encoding=args.encoding,
    )
    print(f"✅ AC features added -> {args.out}  (rows={len(out):,})")

if __name__ == "__main__":
    main()
