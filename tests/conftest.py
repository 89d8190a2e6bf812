import pytest

from auth.signer import Signer
from tests.auth_helpers import TEST_SECRET


@pytest.fixture
def signer() -> Signer:
    return Signer(TEST_SECRET)
