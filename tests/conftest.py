import pytest

from talksync import AsyncTalkClient
from tests.fakes import FakeGateway


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def client(gateway: FakeGateway) -> AsyncTalkClient:
    """A client that already holds a token (as after a token login)."""
    return AsyncTalkClient(auth_token="tok", certificate="cert", gateway=gateway)
