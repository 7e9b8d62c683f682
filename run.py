#!/usr/bin/env python3
"""
Runner for dictionary matching.

Usage:
  python run.py --dictionary terms.txt --text doc.txt --out matches.csv
  python run.py --dictionary terms.csv --text rows.csv --text-col DESCRIPTION --out rows_ac.csv
"""

import argparse
import logging
import sys
from pathlib import Path

from dictmatch.ac import build
from dictmatch.ac_features import add_match_features, automaton_frame, matches_frame
from dictmatch.normalize import ensure_unique_columns, load_csv_any, load_dictionary, normalize_headers, normalize_text

def ensure_path_exists(p: Path, should_exist=True):
    if should_exist and not p.exists():
        raise FileNotFoundError(f"Required file not found: {p}")

def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Scan text against a dictionary with an Aho–Corasick automaton.")
    ap.add_argument("--dictionary", required=True, help="Dictionary: .txt (one pattern per line) or CSV")
    ap.add_argument("--text", required=True, help="Plain text file, or CSV when --text-col is given")
    ap.add_argument("--out", default="out/matches.csv", help="Output CSV")
    ap.add_argument("--text-col", default=None, help="Scan this CSV column row by row instead of a plain text file")
    ap.add_argument("--pattern-col", default=None, help="Dictionary CSV pattern column")
    ap.add_argument("--key-col", default=None, help="Dictionary CSV key column")
    ap.add_argument("--normalize", action=argparse.BooleanOptionalAction, default=True,
                    help="Uppercase and collapse whitespace in dictionary and text")
    ap.add_argument("--word-boundary", action="store_true", help="Only keep whole-word matches (CSV mode)")
    ap.add_argument("--longest-only", action="store_true", help="Keep leftmost-longest non-overlapping matches (CSV mode)")
    ap.add_argument("--describe", action="store_true", help="Log the automaton's states and links")
    ap.add_argument("--encoding", default="utf-8")
    ap.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    return ap.parse_args(argv)

def load_automaton(args):
    patterns = load_dictionary(Path(args.dictionary), pattern_col=args.pattern_col, key_col=args.key_col,
                               normalize=args.normalize, encoding=args.encoding)
    automaton = build(p for p, _ in patterns)
    logging.info("Automaton: %d states, %d patterns", len(automaton), automaton.patterns)
    if args.describe:
        logging.info("States:\n%s", automaton_frame(automaton).to_string())
    return automaton, dict(patterns)

def scan_text_file(args, automaton) -> int:
    text = Path(args.text).read_text(encoding=args.encoding)
    if args.normalize:
        text = normalize_text(text)
    df = matches_frame(automaton, text)

    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(out, index=False)
    return len(df)

def scan_csv_column(args, automaton, payloads) -> int:
    df = ensure_unique_columns(normalize_headers(load_csv_any(Path(args.text), encoding=args.encoding)))
    df = add_match_features(df, automaton, text_col=args.text_col, payloads=payloads,
                            word_boundary=args.word_boundary, longest_only=args.longest_only,
                            normalize=args.normalize)
    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(out, index=False)
    return len(df)

def main(argv=None):
    args = parse_args(argv)

    # logging
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")

    for p in (Path(args.dictionary), Path(args.text)):
        logging.debug("Checking input %s", p)
        ensure_path_exists(p, should_exist=True)

    try:
        automaton, payloads = load_automaton(args)
        if args.text_col:
            n, what = scan_csv_column(args, automaton, payloads), "rows"
        else:
            n, what = scan_text_file(args, automaton), "matches"
    except Exception as exc:
        logging.exception("Scan failed: %s", exc)
        sys.exit(2)

    logging.info("✅ Done! %s=%d -> %s", what, n, args.out)

if __name__ == "__main__":
    main()
