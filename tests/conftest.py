import pytest

from tests.fakes import InMemoryWordStore, StaticGate, make_card


@pytest.fixture
def cards():
    return [make_card("1"), make_card("2"), make_card("3")]


@pytest.fixture
def store(cards):
    return InMemoryWordStore(cards)


@pytest.fixture
def gate():
    return StaticGate()


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config and tokens
    monkeypatch.setenv("HOME", str(home))
    for var in (
        "WORDLOOP_BACKEND",
        "WORDLOOP_STORE_URL",
        "WORDLOOP_WORDS_FILE",
        "WORDLOOP_TOKEN_FILE",
        "WORDLOOP_ALLOWED_EMAILS",
        "WORDLOOP_PASS_THRESHOLD",
    ):
        monkeypatch.delenv(var, raising=False)
    return home
