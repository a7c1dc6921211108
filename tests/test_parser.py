import pytest

from arrowsheet import parse_script
from arrowsheet.lexer import tokenize_line


def parse_single(text: str):
    script = parse_script(text)
    assert len(script.stmts) == 1, f"expected single statement, got {len(script.stmts)}"
    return script.stmts[0]


def test_imaginary_literals():
    kinds = [t[0] for t in tokenize_line('2i 0.5i i 2in', 1)]
    assert kinds == ['IMAG', 'IMAG', 'ID', 'NUMBER', 'ID']


def test_comments_and_blank_lines_are_skipped():
    script = parse_script('\n# nothing here\n   \nsettle  # done\n')
    assert [s.kind for s in script.stmts] == ['settle']
    assert script.stmts[0].span.line == 4


@pytest.mark.parametrize(
    'text, value',
    [
        ('var a = 1', 1),
        ('var a = 1+2i', 1 + 2j),
        ('var a = -1-i', -1 - 1j),
        ('var a = i', 1j),
        ('var a = +0.5i', 0.5j),
        ('var a = 2 - 0.25i', 2 - 0.25j),
        ('var a = 1e-2', 0.01),
    ],
)
def test_complex_literals(text, value):
    stmt = parse_single(text)
    assert stmt.kind == 'var'
    assert stmt.data == {'name': 'a', 'value': value}


def test_constants_with_and_without_names():
    assert parse_single('const -1').data == {'name': None, 'value': -1}
    assert parse_single('const half = 0.5').data == {'name': 'half', 'value': 0.5}


def test_derive_statement():
    stmt = parse_single('s = a + b')
    assert stmt.kind == 'derive'
    assert stmt.data == {'name': 's', 'op': '+', 'a': 'a', 'b': 'b'}
    assert parse_single('p = a*b').data['op'] == '*'


@pytest.mark.parametrize(
    'text, kind, data',
    [
        ('pin a', 'pin', {'target': 'a'}),
        ('unpin a', 'unpin', {'target': 'a'}),
        ('invert + a', 'invert', {'op': '+', 'target': 'a', 'alias': None}),
        ('invert * a as ra', 'invert', {'op': '*', 'target': 'a', 'alias': 'ra'}),
        ('merge', 'merge', {'tolerance': None}),
        ('merge 0.25', 'merge', {'tolerance': 0.25}),
        ('relax 500', 'relax', {'steps': 500}),
        ('settle', 'settle', {}),
        ('rename a z', 'rename', {'old': 'a', 'new': 'z'}),
        ('drag a to 2-i', 'drag', {'target': 'a', 'to': 2 - 1j}),
    ],
)
def test_commands(text, kind, data):
    stmt = parse_single(text)
    assert stmt.kind == kind
    assert stmt.data == data


def test_span_points_at_statement_head():
    script = parse_script('var a = 1\n  pin a')
    assert (script.stmts[1].span.line, script.stmts[1].span.col) == (2, 3)


@pytest.mark.parametrize(
    'text, message',
    [
        ('frobnicate a', "unknown statement 'frobnicate'"),
        ('relax 1.5', 'whole number'),
        ('settle now', 'unexpected trailing'),
        ('var a = 1 $', 'unexpected character'),
        ('var a =', 'unexpected end of line'),
        ('invert - a', 'expected PLUS|STAR'),
        ('invert + a like b', "expected keyword 'as'"),
        ('var a = x', 'expected a number'),
    ],
)
def test_errors(text, message):
    with pytest.raises(SyntaxError) as exc:
        parse_script(text)
    assert message in str(exc.value)
    assert str(exc.value).startswith('[line 1')
