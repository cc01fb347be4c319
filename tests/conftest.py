"""
Fixtures for pay engine tests.
"""

import pytest

from config import default_worker_config, merge_worker_config
from domain import Grade, Worker


@pytest.fixture
def sergent():
    """Sergent with the default on-site slots and coefficients."""
    return Worker(
        id="user-1",
        grade=Grade.SERGENT,
        config=default_worker_config(),
        first_name="Jean",
        last_name="Dupont",
        station="CS-Principal",
    )


@pytest.fixture
def make_worker():
    """Factory for workers whose stored settings differ from the defaults."""
    def _make(grade=Grade.SERGENT, stored=None, id="user-2"):
        return Worker(id=id, grade=grade, config=merge_worker_config(stored))
    return _make
