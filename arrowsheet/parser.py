from typing import List, Optional

from .ast import Script, Span, Stmt
from .lexer import Token, tokenize_line

KEYWORDS = ('var', 'const', 'pin', 'unpin', 'invert', 'merge', 'relax', 'settle', 'rename', 'drag')
OPERATORS = {'PLUS': '+', 'STAR': '*'}


class Cursor:
    def __init__(self, tokens: List[Token], line_no: int):
        self.toks = tokens
        self.i = 0
        self.line_no = line_no

    def peek(self) -> Optional[Token]:
        return self.toks[self.i] if self.i < len(self.toks) else None

    def match(self, *types: str) -> Optional[Token]:
        if self.i < len(self.toks) and self.toks[self.i][0] in types:
            t = self.toks[self.i]
            self.i += 1
            return t
        return None

    def expect(self, *types: str) -> Token:
        t = self.peek()
        if t and t[0] in types:
            self.i += 1
            return t
        want = '|'.join(types)
        if t:
            raise SyntaxError(f'[line {t[2]}, col {t[3]}] expected {want}, got {t[0]} {t[1]!r}')
        raise SyntaxError(f'[line {self.line_no}] unexpected end of line: expected {want}')

    def expect_keyword(self, word: str) -> Token:
        t = self.expect('ID')
        if t[1] != word:
            raise SyntaxError(f"[line {t[2]}, col {t[3]}] expected keyword '{word}', got '{t[1]}'")
        return t

    def at_end(self) -> bool:
        return self.i >= len(self.toks)

    def finish(self) -> None:
        t = self.peek()
        if t:
            raise SyntaxError(f'[line {t[2]}, col {t[3]}] unexpected trailing {t[0]} {t[1]!r}')


def parse_name(cur: Cursor) -> str:
    return cur.expect('ID')[1]


def parse_operator(cur: Cursor) -> str:
    return OPERATORS[cur.expect('PLUS', 'STAR')[0]]


def _parse_term(cur: Cursor) -> complex:
    t = cur.expect('NUMBER', 'IMAG', 'ID')
    if t[0] == 'NUMBER':
        return complex(float(t[1]), 0.0)
    if t[0] == 'IMAG':
        return complex(0.0, float(t[1]))
    if t[1] != 'i':
        raise SyntaxError(f"[line {t[2]}, col {t[3]}] expected a number, got '{t[1]}'")
    return 1j


def parse_complex(cur: Cursor) -> complex:
    """``[+|-] term [(+|-) term]`` where a term is ``3``, ``2.5i`` or ``i``."""
    sign = -1.0 if cur.match('MINUS') else 1.0
    if sign > 0:
        cur.match('PLUS')
    value = sign * _parse_term(cur)
    op = cur.match('PLUS', 'MINUS')
    if op:
        term = _parse_term(cur)
        value = value + term if op[0] == 'PLUS' else value - term
    return value


def parse_line(s: str, line_no: int) -> Optional[Stmt]:
    tokens = tokenize_line(s, line_no)
    if not tokens:
        return None
    cur = Cursor(tokens, line_no)
    head = cur.expect('ID')
    sp = Span(head[2], head[3])

    if cur.match('EQUAL'):
        a = parse_name(cur)
        op = parse_operator(cur)
        b = parse_name(cur)
        stmt = Stmt('derive', sp, {'name': head[1], 'op': op, 'a': a, 'b': b})
    else:
        kw = head[1]
        if kw not in KEYWORDS:
            raise SyntaxError(f"[line {sp.line}, col {sp.col}] unknown statement '{kw}'")
        if kw == 'var':
            name = parse_name(cur)
            cur.expect('EQUAL')
            stmt = Stmt('var', sp, {'name': name, 'value': parse_complex(cur)})
        elif kw == 'const':
            name = None
            t = cur.peek()
            nxt = cur.toks[cur.i + 1] if cur.i + 1 < len(cur.toks) else None
            if t and t[0] == 'ID' and nxt and nxt[0] == 'EQUAL':
                name = parse_name(cur)
                cur.expect('EQUAL')
            stmt = Stmt('const', sp, {'name': name, 'value': parse_complex(cur)})
        elif kw in ('pin', 'unpin'):
            stmt = Stmt(kw, sp, {'target': parse_name(cur)})
        elif kw == 'invert':
            op = parse_operator(cur)
            target = parse_name(cur)
            alias = None
            if not cur.at_end():
                cur.expect_keyword('as')
                alias = parse_name(cur)
            stmt = Stmt('invert', sp, {'op': op, 'target': target, 'alias': alias})
        elif kw == 'merge':
            t = cur.match('NUMBER')
            stmt = Stmt('merge', sp, {'tolerance': float(t[1]) if t else None})
        elif kw == 'relax':
            t = cur.expect('NUMBER')
            if not t[1].isdigit():
                raise SyntaxError(f'[line {t[2]}, col {t[3]}] relax needs a whole number of steps')
            stmt = Stmt('relax', sp, {'steps': int(t[1])})
        elif kw == 'settle':
            stmt = Stmt('settle', sp, {})
        elif kw == 'rename':
            old = parse_name(cur)
            stmt = Stmt('rename', sp, {'old': old, 'new': parse_name(cur)})
        else:
            target = parse_name(cur)
            cur.expect_keyword('to')
            stmt = Stmt('drag', sp, {'target': target, 'to': parse_complex(cur)})
    cur.finish()
    return stmt


def parse_script(text: str) -> Script:
    stmts: List[Stmt] = []
    for idx, raw in enumerate(text.splitlines(), start=1):
        stmt = parse_line(raw, idx)
        if stmt is not None:
            stmts.append(stmt)
    return Script(stmts)
