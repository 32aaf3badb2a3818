"""
Tests for placeholder handling, binding and debug rendering.
"""
import datetime

import pytest
from sqlbridge.exceptions import CompileError
from sqlbridge.sql import TokenType, bind_params
from sqlbridge.sql import format_sql, make_placeholders
from sqlbridge.sql import quote_identifier, tokenize_sql


def test_tokenize_preserves_text():
    sql = "SELECT `a?`, 'b?' FROM t -- c?\nWHERE x = ?"
    tokens = tokenize_sql(sql)
    assert ''.join(t.text for t in tokens) == sql
    assert [t.type for t in tokens if t.type != TokenType.SQL_TEXT] == [
        TokenType.IDENTIFIER, TokenType.STRING_LITERAL, TokenType.COMMENT,
        TokenType.POSITIONAL_PH]


@pytest.mark.parametrize(('sql', 'expected'), [
    ('SELECT 1', 0),
    ('SELECT * FROM t WHERE a = ? AND b = ?', 2),
    ("SELECT '?' FROM t WHERE a = ?", 1),
    ("SELECT 'it''s ?' FROM t", 0),
    ("SELECT 'a\\'?' FROM t WHERE b = ?", 1),
    ('SELECT `col?` FROM t', 0),
    ('SELECT 1 /* ? */ # ?\n', 0),
])
def test_placeholders_outside_literals(sql, expected):
    """Test only bare placeholders become binds"""
    _, params = bind_params(sql, list(range(expected)))
    assert list(params) == [f'p{i}' for i in range(expected)]


def test_make_placeholders():
    assert make_placeholders(3) == '?, ?, ?'
    assert make_placeholders(0) == ''


def test_quote_identifier():
    assert quote_identifier('person') == '`person`'
    assert quote_identifier('we`ird') == '`we``ird`'
    with pytest.raises(CompileError):
        quote_identifier('')
    with pytest.raises(CompileError):
        quote_identifier(None)


def test_bind_params_names_positions():
    clause, params = bind_params('SELECT * FROM `t` WHERE `a` = ? AND `b` IN (?, ?)', [1, 'x', None])
    assert str(clause) == 'SELECT * FROM `t` WHERE `a` = :p0 AND `b` IN (:p1, :p2)'
    assert params == {'p0': 1, 'p1': 'x', 'p2': None}


def test_bind_params_leaves_literals_alone():
    clause, params = bind_params("SELECT '?' AS q, `c?` FROM t WHERE a = ?", [5])
    assert params == {'p0': 5}
    assert "'?'" in str(clause)
    assert '`c?`' in str(clause)


def test_bind_params_escapes_colons():
    """Test literal colons are not taken as bind names"""
    clause, params = bind_params("SELECT '10:30' AS t, a FROM x WHERE b = ?", [1])
    assert list(clause._bindparams) == ['p0']
    assert params == {'p0': 1}


def test_bind_params_arity_mismatch():
    with pytest.raises(CompileError):
        bind_params('SELECT ? + ?', [1])
    with pytest.raises(CompileError):
        bind_params('SELECT 1', [1])


def test_format_sql_renders_literals():
    sql = 'SELECT * FROM `t` WHERE `a` = ? AND `b` = ? AND `c` IS ? AND `d` = ?'
    rendered = format_sql(sql, ["O'Brien", 5, None, datetime.date(2024, 1, 2)])
    assert rendered == ("SELECT * FROM `t` WHERE `a` = 'O\\'Brien' AND `b` = 5 "
                        "AND `c` IS NULL AND `d` = '2024-01-02'")


def test_format_sql_without_values():
    assert format_sql('SELECT 1') == 'SELECT 1'


if __name__ == '__main__':
    __import__('pytest').main([__file__])
