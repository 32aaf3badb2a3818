import pandas as pd
import pytest
from sqlbridge.options import iterdict_data_loader, pandas_numpy_data_loader
from sqlbridge.options import pandas_pyarrow_data_loader


def test_pandas_numpy_data_loader():
    """Test pandas_numpy_data_loader function"""
    data = [{'fullName': 'Alice', 'age': 30}, {'fullName': 'Bob', 'age': 25}]

    result = pandas_numpy_data_loader(data, ['fullName', 'age'])
    assert isinstance(result, pd.DataFrame)
    assert list(result.columns) == ['fullName', 'age']
    assert len(result) == 2
    assert result.iloc[0]['fullName'] == 'Alice'
    assert result.iloc[1]['age'] == 25


@pytest.mark.skipif(
    not hasattr(pd, 'ArrowDtype'),
    reason='ArrowDtype not available in this pandas version'
)
def test_pandas_pyarrow_data_loader():
    """Test pandas_pyarrow_data_loader function"""
    data = [{'fullName': 'Alice', 'age': 30}, {'fullName': 'Bob', 'age': 25}]

    result = pandas_pyarrow_data_loader(data, ['fullName', 'age'])
    assert isinstance(result, pd.DataFrame)
    assert list(result.columns) == ['fullName', 'age']
    assert len(result) == 2
    assert result.iloc[0]['fullName'] == 'Alice'
    assert result.iloc[1]['age'] == 25


def test_empty_results_keep_columns():
    """Test loaders return an empty frame with columns instead of None"""
    for loader in (pandas_numpy_data_loader, pandas_pyarrow_data_loader):
        result = loader([], ['id', 'name'])
        assert isinstance(result, pd.DataFrame)
        assert list(result.columns) == ['id', 'name']
        assert result.empty


def test_iterdict_data_loader():
    data = [{'a': 1}]
    assert iterdict_data_loader(data, ['a']) == [{'a': 1}]
    assert iterdict_data_loader([], ['a']) == []


if __name__ == '__main__':
    __import__('pytest').main([__file__])
