import pathlib
import site

import pytest
from sqlbridge.naming import to_camel_case, to_snake_case

HERE = pathlib.Path(pathlib.Path(__file__).resolve()).parent
site.addsitedir(HERE)


@pytest.fixture(autouse=True)
def clear_caches():
    """Clear name conversion caches before and after each test to ensure test isolation."""
    to_snake_case.cache.clear()
    to_camel_case.cache.clear()
    yield
    to_snake_case.cache.clear()
    to_camel_case.cache.clear()


pytest_plugins = [
    'tests.fixtures.mocks',
    'tests.fixtures.mysql',
]
