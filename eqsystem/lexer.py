import re
from typing import List

SYMBOLS = '()^*/+-,='

WS = ' \t\r\n'

_id_re = re.compile(r'[A-Za-z][A-Za-z0-9_]*')
_num_re = re.compile(r'(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?')


def _at_boundary(s: str, i: int) -> bool:
    return i >= len(s) or s[i] in WS or s[i] in SYMBOLS


def scan_words(s: str) -> List[str]:
    """Split ``s`` into operator, parenthesis, comma and operand words.

    Operand words are maximal runs of characters that are neither whitespace
    nor symbols, except that a numeric literal keeps the sign of its
    exponent (``1e-5`` is one word).
    """
    words: List[str] = []
    i = 0
    n = len(s)
    while i < n:
        ch = s[i]
        if ch in WS:
            i += 1
            continue
        if ch in SYMBOLS:
            words.append(ch)
            i += 1
            continue
        m = _num_re.match(s, i)
        if m and _at_boundary(s, m.end()):
            words.append(m.group(0))
            i = m.end()
            continue
        j = i
        while j < n and not _at_boundary(s, j):
            j += 1
        words.append(s[i:j])
        i = j
    return words


def is_number(word: str) -> bool:
    return bool(_num_re.fullmatch(word))


def is_identifier(word: str) -> bool:
    return bool(_id_re.fullmatch(word))


def get_legal_variables(text: str) -> List[str]:
    """Return the identifiers in ``text`` in first-seen order, without repeats."""
    seen = set()
    names: List[str] = []
    for word in scan_words(text):
        if word not in seen and is_identifier(word):
            seen.add(word)
            names.append(word)
    return names
