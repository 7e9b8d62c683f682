# ac.py
"""
Aho–Corasick dictionary matcher.

Two phases:
  - Trie: insert-only prefix tree over hashable symbols (chars of a str, or tokens).
  - build_automaton(trie): one BFS pass that adds failure links and output
    (dictionary) links and returns a frozen Automaton.

Nodes live in an arena of parallel lists; a node is just its integer id and
the root is id 0.
"""
import logging
from collections import deque
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Hashable, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

ROOT = 0


# ---- errors ------------------------------------------------------------------
class InvalidInputError(ValueError):
    """Pattern set or text is not a well-formed sequence of hashable symbols."""


class FrozenAutomatonError(RuntimeError):
    """Insert attempted on a trie that has already been built."""


# ---- value types -------------------------------------------------------------
@dataclass(frozen=True)
class Match:
    pattern: Sequence[Any]
    end_position: int      # inclusive index of the last matched symbol

    @property
    def start(self) -> int:
        return self.end_position - len(self.pattern) + 1

    @property
    def span(self) -> Tuple[int, int]:
        """Half-open (start, end) for slicing the scanned text."""
        return self.start, self.end_position + 1


@dataclass(frozen=True)
class Node:
    """Read-only view of one automaton state."""
    index: int
    label: Sequence[Any]
    children: Mapping[Hashable, int]
    is_terminal: bool
    parent: Optional[int]
    failure_link: int
    output_link: Optional[int]

    @property
    def is_root(self) -> bool:
        return self.index == ROOT


# ---- input validation --------------------------------------------------------
def _as_symbols(seq: Any, what: str) -> Sequence[Hashable]:
    """Return `seq` as an indexable sequence of hashable symbols or raise InvalidInputError."""
    if isinstance(seq, (str, bytes)):
        return seq
    if seq is None:
        raise InvalidInputError(f"{what} is None")
    try:
        symbols = tuple(seq)
    except TypeError as exc:
        raise InvalidInputError(f"{what} is not iterable: {type(seq).__name__}") from exc
    for i, sym in enumerate(symbols):
        try:
            hash(sym)
        except TypeError as exc:
            raise InvalidInputError(
                f"{what} has unhashable symbol at {i}: {type(sym).__name__}"
            ) from exc
    return symbols


def _as_pattern_set(patterns: Any) -> List[Sequence[Hashable]]:
    if patterns is None:
        raise InvalidInputError("pattern set is None")
    # a bare string would silently become one pattern per character
    if isinstance(patterns, (str, bytes)):
        raise InvalidInputError("pattern set must be a collection of patterns, not a single string")
    try:
        items = list(patterns)
    except TypeError as exc:
        raise InvalidInputError(f"pattern set is not iterable: {type(patterns).__name__}") from exc
    return [_as_symbols(p, f"pattern #{i}") for i, p in enumerate(items)]


def _prefix(symbols: Sequence[Hashable], n: int) -> Sequence[Hashable]:
    if isinstance(symbols, (str, bytes)):
        return symbols[:n]
    return tuple(symbols[:n])


# ---- trie --------------------------------------------------------------------
class Trie:
    def __init__(self, patterns: Optional[Iterable[Sequence[Hashable]]] = None):
        self.goto: List[Dict[Hashable, int]] = [dict()]   # root = 0
        self.terminal: List[bool] = [False]
        self.parent: List[Optional[int]] = [None]
        self.labels: List[Sequence[Hashable]] = [""]
        self.frozen = False
        if patterns is not None:
            for symbols in _as_pattern_set(patterns):
                self._insert(symbols)

    def __len__(self) -> int:
        return len(self.goto)

    @property
    def patterns(self) -> int:
        return sum(self.terminal)

    def insert(self, pattern: Sequence[Hashable]) -> int:
        """Add one pattern; returns the id of its terminal node."""
        if self.frozen:
            raise FrozenAutomatonError("trie is frozen; patterns cannot be added after build")
        return self._insert(_as_symbols(pattern, "pattern"))

    def _insert(self, symbols: Sequence[Hashable]) -> int:
        s = ROOT
        if len(self.goto) == 1 and symbols:
            # root label takes the first pattern's kind: "", b"" or ()
            self.labels[ROOT] = _prefix(symbols, 0)
        for i, ch in enumerate(symbols):
            if ch not in self.goto[s]:
                self.goto[s][ch] = len(self.goto)
                self.goto.append(dict()); self.terminal.append(False)
                self.parent.append(s); self.labels.append(_prefix(symbols, i + 1))
            s = self.goto[s][ch]
        self.terminal[s] = True
        return s

    def find(self, pattern: Sequence[Hashable]) -> Optional[int]:
        """Exact prefix lookup along child edges only."""
        s = ROOT
        for ch in _as_symbols(pattern, "pattern"):
            s = self.goto[s].get(ch)
            if s is None:
                return None
        return s


# ---- automaton ---------------------------------------------------------------
class Automaton:
    """Frozen trie plus failure/output links. Safe to scan from several threads at once."""

    def __init__(self, goto, terminal, parent, labels, fail, out):
        self._goto: Tuple[Mapping[Hashable, int], ...] = tuple(MappingProxyType(dict(g)) for g in goto)
        self._terminal: Tuple[bool, ...] = tuple(terminal)
        self._parent: Tuple[Optional[int], ...] = tuple(parent)
        self._labels: Tuple[Sequence[Hashable], ...] = tuple(labels)
        self._fail: Tuple[int, ...] = tuple(fail)
        self._out: Tuple[Optional[int], ...] = tuple(out)

    def __len__(self) -> int:
        return len(self._goto)

    def __iter__(self) -> Iterator[Node]:
        for i in range(len(self._goto)):
            yield self.node(i)

    @property
    def patterns(self) -> int:
        return sum(self._terminal)

    @property
    def root(self) -> Node:
        return self.node(ROOT)

    def node(self, index: int) -> Node:
        return Node(
            index=index,
            label=self._labels[index],
            children=self._goto[index],
            is_terminal=self._terminal[index],
            parent=self._parent[index],
            failure_link=self._fail[index],
            output_link=self._out[index],
        )

    def find(self, pattern: Sequence[Hashable]) -> Optional[Node]:
        s = ROOT
        for ch in _as_symbols(pattern, "pattern"):
            s = self._goto[s].get(ch)
            if s is None:
                return None
        return self.node(s)

    def output_chain(self, index: int) -> List[int]:
        """Terminal proper suffixes of node `index`, longest first."""
        chain = []
        o = self._out[index]
        while o is not None:
            chain.append(o)
            o = self._out[o]
        return chain

    def next_state(self, s: int, ch: Hashable) -> int:
        """goto(s, ch): direct edge, else fall back along failure links, else root."""
        goto, fail = self._goto, self._fail
        while ch not in goto[s]:
            if s == ROOT:
                return ROOT
            s = fail[s]
        return goto[s][ch]

    def finditer(self, text: Sequence[Hashable]) -> Iterator[Match]:
        """Lazily yield every match, ordered by end position then longest first."""
        symbols = _as_symbols(text, "text")
        return self._walk(symbols)

    def _walk(self, symbols: Sequence[Hashable]) -> Iterator[Match]:
        terminal, labels, out = self._terminal, self._labels, self._out
        s = ROOT
        for i, ch in enumerate(symbols):
            s = self.next_state(s, ch)
            if s != ROOT and terminal[s]:
                yield Match(labels[s], i)
            o = out[s]
            while o is not None:
                yield Match(labels[o], i)
                o = out[o]

    def scan(self, text: Sequence[Hashable]) -> List[Match]:
        return list(self.finditer(text))

    def describe(self) -> str:
        """Indented dump of the trie with its links, one block per node."""
        lines = []
        stack = [(ROOT, 0)]
        while stack:
            s, depth = stack.pop()
            pad = " " * depth
            lines.append(f"{pad}value: {self._labels[s]!r}")
            lines.append(f"{pad}end: {self._terminal[s]}")
            if s != ROOT:
                lines.append(f"{pad}failure link: {self._labels[self._fail[s]]!r}")
            if self._out[s] is not None:
                lines.append(f"{pad}dictionary link: {self._labels[self._out[s]]!r}")
            # reversed so children print in insertion order
            for child in reversed(list(self._goto[s].values())):
                stack.append((child, depth + 1))
        return "\n".join(lines)


# ---- builder -----------------------------------------------------------------
def build_automaton(trie: Trie) -> Automaton:
    """Compute failure and output links in BFS order and freeze the trie."""
    goto, terminal = trie.goto, trie.terminal
    fail: List[int] = [ROOT] * len(goto)
    out: List[Optional[int]] = [None] * len(goto)

    # depth 1 falls back to root; root is never an output link
    q = deque(goto[ROOT].values())
    while q:
        r = q.popleft()
        for ch, s in goto[r].items():
            q.append(s)
            f = fail[r]
            while f != ROOT and ch not in goto[f]:
                f = fail[f]
            t = goto[f].get(ch, ROOT)
            fail[s] = t
            out[s] = t if t != ROOT and terminal[t] else out[t]

    trie.frozen = True
    logger.debug("built automaton: %d nodes, %d patterns", len(goto), sum(terminal))
    return Automaton(goto, terminal, trie.parent, trie.labels, fail, out)


def build(patterns: Iterable[Sequence[Hashable]]) -> Automaton:
    """Build an automaton from an ordered collection of patterns."""
    return build_automaton(Trie(patterns))


def scan(automaton: Automaton, text: Sequence[Hashable]) -> List[Match]:
    return automaton.scan(text)
