import pytest

from fakes import FakeFirestore


@pytest.fixture
def db():
    return FakeFirestore()
