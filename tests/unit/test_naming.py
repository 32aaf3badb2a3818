"""
Tests for identifier conversion between ORM and storage names.
"""
import pytest
from sqlbridge.naming import CaseConversion, CustomConversion
from sqlbridge.naming import IdentityConversion, NameConversion
from sqlbridge.naming import get_name_conversion, normalize_results
from sqlbridge.naming import to_camel_case, to_snake_case
from sqlbridge.options import MySQLOptions


@pytest.mark.parametrize(('bean', 'sql'), [
    ('hasDriverLicense', 'has_driver_license'),
    ('id', 'id'),
    ('fullName', 'full_name'),
    ('a1', 'a1'),
    ('value2x', 'value2x'),
])
def test_case_round_trip(bean, sql):
    """Test camelCase and snake_case are inverses for well formed names"""
    assert to_snake_case(bean) == sql
    assert to_camel_case(sql) == bean


def test_names_without_boundaries_are_invariant():
    """Test single word names pass through unchanged in both directions"""
    for name in ('id', 'name', 'age', 'x'):
        assert to_snake_case(name) == name
        assert to_camel_case(name) == name


@pytest.mark.parametrize('name', [
    'hasDriverLicense', 'fullName', 'id', 'has_driver_license', 'full_name',
    '_private', 'trailing_', 'double__under', 'HTTPServer', 'a_1',
])
@pytest.mark.parametrize('convert', [
    to_snake_case, to_camel_case, IdentityConversion().to_sql, IdentityConversion().to_bean,
])
def test_conversion_is_idempotent(convert, name):
    """Test converting an already converted name changes nothing"""
    once = convert(name)
    assert convert(once) == once


@pytest.mark.parametrize('name', [
    '_private', 'trailing_', 'double__under', 'HTTPServer', 'ID', '__', '',
    'a_1',
])
def test_malformed_names_never_raise(name):
    """Test malformed names degrade to a best-effort transform"""
    assert isinstance(to_snake_case(name), str)
    assert isinstance(to_camel_case(name), str)


def test_leading_underscore_kept():
    assert to_camel_case('_private') == '_private'
    assert to_snake_case('_private') == '_private'


def test_inner_underscore_run_collapses():
    assert to_camel_case('double__under') == 'doubleUnder'


def test_conversion_is_cached():
    """Test conversions are memoised in the bounded cache"""
    to_snake_case('someFieldName')
    assert any('someFieldName' in key for key in to_snake_case.cache)


def test_normalize_results_preserves_order():
    """Test rows and keys keep their order after conversion"""
    rows = [
        {'id': 1, 'full_name': 'Alice', 'has_driver_license': 1},
        {'id': 2, 'full_name': 'Bob', 'has_driver_license': 0},
    ]
    result = normalize_results(rows)
    assert [r['id'] for r in result] == [1, 2]
    assert list(result[0].keys()) == ['id', 'fullName', 'hasDriverLicense']
    assert result[1]['fullName'] == 'Bob'


def test_parse_results_never_drops_fields():
    rows = [{'a_b': 1, 'c': 2, 'd_e_f': 3}]
    result = CaseConversion().parse_results(rows)
    assert len(result[0]) == 3


def test_identity_conversion():
    conv = IdentityConversion()
    assert conv.to_sql('fullName') == 'fullName'
    assert conv.to_bean('full_name') == 'full_name'
    rows = [{'full_name': 'A'}]
    assert conv.parse_results(rows) == rows


def test_custom_conversion_derives_parse_results():
    """Test parse_results falls back to to_bean per key"""
    conv = CustomConversion(str.upper, str.lower)
    assert conv.to_sql('name') == 'NAME'
    assert conv.parse_results([{'NAME': 'x', 'AGE': 1}]) == [{'name': 'x', 'age': 1}]


def test_custom_conversion_uses_given_parse_results():
    calls = []

    def parse(rows):
        calls.append(rows)
        return [{'parsed': True}]

    conv = CustomConversion(str.upper, str.lower, parse)
    assert conv.parse_results([{'A': 1}]) == [{'parsed': True}]
    assert calls == [[{'A': 1}]]


def test_custom_conversion_requires_callables():
    with pytest.raises(ValueError):
        CustomConversion('upper', str.lower)


def test_policy_precedence():
    """Test custom beats disabled beats default"""
    base = {'host': 'localhost', 'database': 'db'}

    default = get_name_conversion(MySQLOptions(**base))
    assert isinstance(default, CaseConversion)

    disabled = get_name_conversion(MySQLOptions(disable_identifier_conversion=True, **base))
    assert isinstance(disabled, IdentityConversion)

    custom = get_name_conversion(MySQLOptions(
        disable_identifier_conversion=True,
        custom_identifier_conversion={'to_sql': str.upper, 'to_bean': str.lower},
        **base))
    assert isinstance(custom, CustomConversion)
    assert custom.to_sql('name') == 'NAME'


def test_custom_conversion_from_object():
    class Upper:
        def to_sql(self, name):
            return name.upper()

        def to_bean(self, name):
            return name.lower()

    options = MySQLOptions(host='localhost', database='db',
                           custom_identifier_conversion=Upper())
    conv = get_name_conversion(options)
    assert conv.to_bean('NAME') == 'name'


def test_custom_conversion_instance_used_as_is():
    class Prefixed(NameConversion):
        def to_sql(self, name):
            return 'c_' + name

        def to_bean(self, name):
            return name.removeprefix('c_')

    policy = Prefixed()
    options = MySQLOptions(host='localhost', database='db',
                           custom_identifier_conversion=policy)
    assert get_name_conversion(options) is policy
    assert policy.parse_row({'c_id': 1}) == {'id': 1}


if __name__ == '__main__':
    __import__('pytest').main([__file__])
