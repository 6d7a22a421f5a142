import pytest

from builddependency.builddependency_logger import BuildDependencyLogger


@pytest.fixture
def logger():
    """A fresh diagnostics sink."""
    return BuildDependencyLogger()
