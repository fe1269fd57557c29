# backend/utils/payment_qr.py
from urllib.parse import quote, urlencode

from config import settings


def bank_transfer_qr_url(amount: float, description: str = None) -> str:
    # VietQR image served by SePay; the amount is sent as a whole number of dong
    params = {
        "acc": settings.BANK_ACCOUNT_NUMBER,
        "bank": settings.BANK_CODE,
        "amount": f"{amount:.0f}",
        "des": description or settings.BANK_TRANSFER_DESCRIPTION,
    }
    return f"{settings.BANK_QR_URL}?{urlencode(params, quote_via=quote)}"


def bank_transfer_instructions(amount: float, description: str = None) -> dict:
    return {
        "qr_code_url": bank_transfer_qr_url(amount, description),
        "account_number": settings.BANK_ACCOUNT_DISPLAY,
        "account_holder": settings.BANK_ACCOUNT_HOLDER,
        "bank": settings.BANK_CODE,
        "amount": amount,
    }
