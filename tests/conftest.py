"""
Shared fixtures
"""

import pytest

from zettelpresenter.models.presenter import PresenterConfig

from builders import FakeSource


@pytest.fixture
def source() -> FakeSource:
    """Empty in-memory content source"""
    return FakeSource()


@pytest.fixture
def config() -> PresenterConfig:
    return PresenterConfig(author="Config Author", copyright="Config Copyright", license="CC-BY")
