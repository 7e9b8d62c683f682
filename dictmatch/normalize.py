# normalize.py
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

logger = logging.getLogger(__name__)

# ---------- Regex ----------
WHITESPACE_PAT = re.compile(r"\s+")
NOISE_PAT = re.compile(r"[^\w/%+().-]+")
MULTI_VALUE_PAT = re.compile(r"[;/|,]+")

PATTERN_COL_CANDIDATES = ["PATTERN", "TERM", "KEYWORD", "WORD", "NAME"]
KEY_COL_CANDIDATES = ["KEY", "ID", "CODE"]

# ---------- IO ----------
def load_csv_any(path: Path, *, delimiter: Optional[str]=None, encoding: Optional[str]=None,
                 as_text: bool=False) -> pd.DataFrame:
    """
    Read a CSV, sniffing the delimiter from the header line unless one is given.
    as_text=True keeps every cell a string (codes like 007 stay intact); blanks are still NaN.
    """
    return pd.read_csv(
        path,
        sep=delimiter,
        encoding=encoding or "utf-8",
        engine="python",
        dtype=str if as_text else None,
    )

def read_lines(path: Path, *, encoding: Optional[str]=None) -> List[str]:
    """One entry per non-blank line, surrounding whitespace stripped."""
    text = Path(path).read_text(encoding=encoding or "utf-8")
    return [ln.strip() for ln in text.splitlines() if ln.strip()]

# ---------- Columns / headers ----------
def _norm_header(s) -> str:
    return re.sub(r"[^\w\s]", "", str(s)).strip().upper().replace(" ", "_")

def normalize_headers(df: pd.DataFrame) -> pd.DataFrame:
    """Canonicalize headers: trim, uppercase, spaces->underscores, strip punctuation."""
    df = df.copy()
    df.columns = [_norm_header(col) for col in df.columns]
    return df

def ensure_unique_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Second and later copies of a header become NAME_1, NAME_2, ..."""
    counts: Dict[str, int] = {}
    renamed = []
    for col in df.columns:
        n = counts.get(col, 0)
        counts[col] = n + 1
        renamed.append(f"{col}_{n}" if n else col)
    return df.set_axis(renamed, axis=1)

def pick_col(df: pd.DataFrame, candidates: List[Optional[str]], *, must=False, label="") -> Optional[str]:
    """Actual column name for the first alias present, compared in canonical header form."""
    by_canon = {_norm_header(c): c for c in df.columns}
    hit = next((by_canon[_norm_header(c)] for c in candidates
                if c is not None and _norm_header(c) in by_canon), None)
    if hit is None and must:
        raise KeyError(f"[pick_col] Missing required column for {label}: tried {candidates}")
    return hit

# ---------- Text normalization ----------
def normalize_text(text: Any) -> str:
    if text is None or (not isinstance(text, str) and pd.isna(text)): return ""
    text = str(text).upper()
    text = NOISE_PAT.sub(" ", text)
    return WHITESPACE_PAT.sub(" ", text).strip()

def split_variants(s: Any, *, normalize: bool = True) -> List[str]:
    """Split multi-valued cells; optionally normalize each piece."""
    if not isinstance(s, str): return []
    parts = [p.strip() for p in MULTI_VALUE_PAT.split(s) if p.strip()]
    if normalize:
        parts = [normalize_text(p) for p in parts]
    return [p for p in parts if p]

# ---------- Dictionary ----------
def load_dictionary(
    path: Path,
    *,
    pattern_col: Optional[str] = None,
    key_col: Optional[str] = None,
    normalize: bool = True,
    encoding: Optional[str] = None,
) -> List[Tuple[str, Dict[str, Any]]]:
    """
    Load (pattern, payload) pairs.
      - .txt / .lst: one pattern per line, payload {"key": pattern}.
      - anything else: CSV; pattern column picked from `pattern_col` or common aliases,
        multi-valued cells split on ; / | ,
    First payload wins when a pattern repeats.
    """
    path = Path(path)
    patterns: Dict[str, Dict[str, Any]] = {}

    def add(term: str, payload: Dict[str, Any]):
        n = normalize_text(term) if normalize else term
        if not n: return
        patterns.setdefault(n, payload)

    if path.suffix.lower() in (".txt", ".lst"):
        for ln in read_lines(path, encoding=encoding):
            add(ln, {"key": ln})
    else:
        df = ensure_unique_columns(normalize_headers(load_csv_any(path, encoding=encoding, as_text=True)))
        pcol = pick_col(df, [pattern_col] if pattern_col else PATTERN_COL_CANDIDATES,
                        must=True, label="dictionary pattern")
        kcol = pick_col(df, [key_col] if key_col else KEY_COL_CANDIDATES,
                        must=bool(key_col), label="dictionary key")
        for _, r in df.iterrows():
            raw = r[pcol]
            if pd.isna(raw):
                continue
            raw = str(raw)
            key = str(r[kcol]) if kcol and pd.notna(r[kcol]) else raw
            for tok in split_variants(raw, normalize=False):
                add(tok, {"key": key})

    logger.info("Loaded %d dictionary patterns from %s", len(patterns), path)
    return list(patterns.items())
