from pathlib import Path

import pytest


FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixture_path():
    def _path(name: str) -> Path:
        return FIXTURES / name
    return _path


@pytest.fixture
def read_fixture(fixture_path):
    def _read(name: str) -> str:
        return fixture_path(name).read_text(encoding="utf-8")
    return _read
