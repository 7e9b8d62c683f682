from .ac import (
    Automaton, FrozenAutomatonError, InvalidInputError, Match, Node, Trie, build, build_automaton, scan
)

__all__ = [
    "Automaton", "FrozenAutomatonError", "InvalidInputError", "Match", "Node", "Trie",
    "build", "build_automaton", "scan",
]
