# Overview: UPI payment instructions and QR codes for unpaid online bills.

from __future__ import annotations

import base64
import io
from decimal import Decimal
from typing import Any
from urllib.parse import quote, urlencode

import qrcode
import qrcode.image.svg

from ..models import Bill


ONLINE_PAYMENT_METHODS = {"ONLINE", "UPI"}


def build_upi_uri(*, upi_id: str, payee_name: str, amount: Decimal, currency: str, note: str) -> str:
    """upi://pay?pa=<vpa>&pn=<payee>&am=<amount>&cu=<currency>&tn=<note>"""
    params = {
        "pa": upi_id,
        "pn": payee_name,
        "am": f"{Decimal(amount):.2f}",
        "cu": currency,
        "tn": note,
    }
    return "upi://pay?" + urlencode(params, quote_via=quote)


def qr_svg_data_uri(payload: str) -> str:
    """Render `payload` as an SVG QR code embedded in a data URI."""
    image = qrcode.make(payload, image_factory=qrcode.image.svg.SvgPathImage)
    buf = io.BytesIO()
    image.save(buf)
    encoded = base64.b64encode(buf.getvalue()).decode("ascii")
    return f"data:image/svg+xml;base64,{encoded}"


def payment_instructions_apply(bill: Bill, settings: dict[str, Any]) -> bool:
    return (
        bill.payment_method in ONLINE_PAYMENT_METHODS
        and bill.payment_status != "PAID"
        and bool(settings.get("payment.upi_id"))
    )


def build_payment_details(bill: Bill, settings: dict[str, Any], *, include_qr: bool = True) -> dict | None:
    """
    Payment block for notification templates, or None when the bill is
    paid, not paid online, or the store has no UPI id configured.
    """
    if not payment_instructions_apply(bill, settings):
        return None

    payee = settings.get("payment.payee_name") or (bill.store.name if bill.store else "")
    currency = settings.get("store.currency") or "INR"
    upi_uri = build_upi_uri(
        upi_id=settings["payment.upi_id"],
        payee_name=payee,
        amount=bill.total_amount,
        currency=currency,
        note=f"Bill {bill.bill_number}",
    )
    return {
        "upi_id": settings["payment.upi_id"],
        "payee_name": payee,
        "amount": f"{Decimal(bill.total_amount):.2f}",
        "currency": currency,
        "upi_uri": upi_uri,
        "qr_data_uri": qr_svg_data_uri(upi_uri) if include_qr else None,
        "bank_account_name": settings.get("payment.bank_account_name"),
        "bank_account_number": settings.get("payment.bank_account_number"),
        "bank_ifsc": settings.get("payment.bank_ifsc"),
    }
