import pytest

from mei.core.constants import QUARTER_SECONDS, SECONDS_PER_DAY


ONE_TOKEN = 10**18
EPOCH = 1_700_000_000


@pytest.fixture
def epoch():
    return EPOCH


@pytest.fixture
def owner():
    return "0x" + "a1" * 20


@pytest.fixture
def holders():
    """Three plain holder accounts (addr1, addr2, addr3)."""
    return ["0x" + "b2" * 20, "0x" + "c3" * 20, "0x" + "d4" * 20]


@pytest.fixture
def token(owner, epoch):
    """Default deployment: 1.23B tokens, 30% vested, anchored at ``epoch``."""
    from mei.core.contracts import MEIToken

    return MEIToken(
        name="MEI Token",
        symbol="MEI",
        total_supply=1_230_000_000 * ONE_TOKEN,
        locked_bps=3000,
        epoch=epoch,
        owner=owner,
    )


@pytest.fixture
def at_day(epoch):
    """Timestamp ``days`` after the epoch (fractional days allowed)."""
    def _at(days):
        return epoch + int(days * SECONDS_PER_DAY)
    return _at


@pytest.fixture
def at_quarter(epoch):
    def _at(quarters, offset=0):
        return epoch + quarters * QUARTER_SECONDS + offset
    return _at
