import pytest

from zerovault.vault.crypto import derive_key

IDENTITY = "alice@example.com"
PASSPHRASE = "correct-horse-battery"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(scope="session")
def key():
    return derive_key(IDENTITY, PASSPHRASE)


@pytest.fixture(scope="session")
def wrong_key():
    return derive_key(IDENTITY, "wrong-password")


@pytest.fixture
def clock():
    return FakeClock()
