import re
from typing import List, Tuple

Token = Tuple[str, str, int, int]  # (type, value, line, col)

SYMBOLS = {
    '(': 'LPAREN',
    ')': 'RPAREN',
    '+': 'PLUS',
    '-': 'MINUS',
    '*': 'STAR',
    '=': 'EQUAL',
}

WS = ' \t\r'

_id_re = re.compile(r'[A-Za-z_][A-Za-z0-9_]*')
_num_re = re.compile(r'(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?')
_ident_char = re.compile(r'[A-Za-z0-9_]')


def tokenize_line(s: str, line_no: int) -> List[Token]:
    """Split one script line into tokens.

    A number glued to a trailing ``i`` (``2i``, ``0.5i``) becomes an ``IMAG``
    token; a bare ``i`` stays an ``ID`` and the parser decides what it means.
    """
    tokens: List[Token] = []
    i = 0
    n = len(s)
    while i < n:
        ch = s[i]
        col = i + 1
        if ch == '#':
            break
        if ch in WS:
            i += 1
            continue
        m = _num_re.match(s, i)
        if m:
            end = m.end()
            if end < n and s[end] == 'i' and not (end + 1 < n and _ident_char.match(s[end + 1])):
                tokens.append(('IMAG', m.group(0), line_no, col))
                i = end + 1
            else:
                tokens.append(('NUMBER', m.group(0), line_no, col))
                i = end
            continue
        m = _id_re.match(s, i)
        if m:
            tokens.append(('ID', m.group(0), line_no, col))
            i = m.end()
            continue
        if ch in SYMBOLS:
            tokens.append((SYMBOLS[ch], ch, line_no, col))
            i += 1
            continue
        raise SyntaxError(f'[line {line_no}, col {col}] unexpected character: {ch!r}')
    return tokens
