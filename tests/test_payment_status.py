import pytest

from tracker_backend.services.payment_status import derive_status
from tracker_frontend.services.orders_service import derive_status as client_derive_status


@pytest.mark.parametrize("paid,total,expected", [
    (0, 10000, "pending"),
    (1, 10000, "partial"),
    (4000, 10000, "partial"),
    (9999, 10000, "partial"),
    (10000, 10000, "paid"),
    (12000, 10000, "paid"),
    (0, 0, "paid"),
])
def test_derive_status(paid, total, expected):
    assert derive_status(paid, total) == expected


@pytest.mark.parametrize("paid,total", [(0, 500), (250, 500), (500, 500), (0, 0)])
def test_client_and_server_rules_agree(paid, total):
    assert client_derive_status(paid, total) == derive_status(paid, total)
