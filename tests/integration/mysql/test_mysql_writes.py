"""
Write operations and error mapping against a live MySQL server.
"""
import pytest
from sqlbridge import filters as f
from sqlbridge.exceptions import ExecutionError, IntegrityViolationError


async def test_insert_generated_key(driver):
    keys = []
    result = await driver.insert('person', {'id': None, 'fullName': 'Fiona', 'age': 28},
                                 'id', keys.append)
    assert result.generated_key == 6
    assert result.affected_rows == 1
    assert keys == [6]
    row = await driver.find_by_key('person', 'id', 6)
    assert row['fullName'] == 'Fiona'


async def test_insert_explicit_key(driver):
    result = await driver.insert('person', {'id': 50, 'fullName': 'Gus', 'age': 60}, 'id')
    assert result.generated_key is None
    assert await driver.count('person', f.eq('id', 50)) == 1


async def test_duplicate_key(driver):
    with pytest.raises(IntegrityViolationError) as excinfo:
        await driver.insert('person', {'id': 1, 'fullName': 'Dup', 'age': 1}, 'id')
    assert 'Duplicate entry' in str(excinfo.value)
    assert driver.statements[-1].startswith('[MYSQL] [ERROR]')


async def test_unknown_table(driver):
    with pytest.raises(ExecutionError):
        await driver.find('no_such_table')


async def test_batch_insert(driver):
    rows = [{'fullName': 'H', 'age': 1}, {'fullName': 'I', 'age': 2}]
    assert await driver.batch_insert('person', rows) == 2
    assert await driver.count('person', None) == 7
    assert await driver.batch_insert('person', []) == 0


async def test_update(driver):
    assert await driver.update('person', 'id', 1, {'fullName': 'Alicia', 'score': None}) == 1
    row = await driver.find_by_key('person', 'id', 1)
    assert row['fullName'] == 'Alicia'
    assert row['score'] is None
    assert await driver.update('person', 'id', 1, {}) == 0


async def test_update_many(driver):
    assert await driver.update_many('person', f.eq('age', 25), {'hasDriverLicense': True}) == 2
    assert await driver.count('person', f.eq('hasDriverLicense', True)) == 5


async def test_delete(driver):
    assert await driver.delete('person', 'id', 1) is True
    assert await driver.delete('person', 'id', 1) is False


async def test_delete_many(driver):
    assert await driver.delete_many('person', f.eq('age', 25)) == 2
    assert await driver.delete_many('person', None) == 3
    assert await driver.count('person', None) == 0


async def test_increment(driver):
    await driver.increment('person', 'id', 2, 'age', 5)
    await driver.increment('person', 'id', 2, 'age', -1)
    row = await driver.find_by_key('person', 'id', 2)
    assert row['age'] == 29


async def test_custom_query(driver):
    result = await driver.custom_query('select full_name, age from person where age > ? order by age',
                                       [30])
    assert result.fields == ['full_name', 'age']
    assert [r['full_name'] for r in result.rows] == ['Charlie', 'Diana']


if __name__ == '__main__':
    __import__('pytest').main([__file__])
