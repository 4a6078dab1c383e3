# tracker_backend/services/payment_status.py
PAID = "paid"
PARTIAL = "partial"
PENDING = "pending"


def derive_status(paid_amount: int, total_amount: int) -> str:
    """paid once the total is covered, pending while nothing is paid, partial otherwise."""
    if paid_amount >= total_amount:
        return PAID
    if paid_amount == 0:
        return PENDING
    return PARTIAL
