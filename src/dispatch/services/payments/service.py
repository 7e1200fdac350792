"""Checkout, capture and void against the Maya gateway.

Capture and void act on an authorization created by the checkout flow. The
gateway call is the source of truth: once it succeeds, a failed storage
update is logged for manual follow-up instead of being rolled back.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from ...config import settings
from ...data.rows import isoformat
from ...errors import ConfigurationError, PaymentGatewayError, PaymentStateError, UpstreamError
from ...persistence import deliveries as delivery_store
from ...schemas.payments import CaptureRequest, CheckoutRequest, VoidRequest
from ..pricing import round_money
from .maya_client import MayaAPIError, MayaClient

logger = logging.getLogger(__name__)

# Gateway codes meaning the authorization is already released.
VOID_TERMINAL_CODES = frozenset({"AUTHORIZATION_EXPIRED", "ALREADY_VOIDED"})


def processing_fee(amount: float, payment_method: str) -> float:
    """Credit/debit cards: 3.5% + 15. Maya wallet: 2.5%."""
    if payment_method == "creditCard":
        return round_money(amount * 0.035 + 15)
    if payment_method == "mayaWallet":
        return round_money(amount * 0.025)
    return 0.0


def _gateway(client: Optional[MayaClient]) -> MayaClient:
    if client is not None:
        return client
    try:
        return MayaClient()
    except ValueError as exc:
        raise ConfigurationError(str(exc), code="payment_gateway_not_configured") from exc


def _reference(prefix: str, delivery_id: str, now: datetime) -> str:
    return f"{prefix}_{delivery_id}_{int(now.timestamp() * 1000)}"


def _record_after_gateway(delivery_id: str, values: dict[str, Any], action: str) -> None:
    try:
        delivery_store.update_delivery(delivery_id, values)
    except UpstreamError as exc:
        logger.error(f"Payment {action} for delivery {delivery_id} succeeded but storage update failed: {exc.message}")


def _split_name(full_name: str) -> tuple[str, str]:
    parts = full_name.split()
    if not parts:
        return full_name, "-"
    return parts[0], " ".join(parts[1:]) or "-"


def create_checkout(
    payload: CheckoutRequest,
    *,
    customer_id: str,
    client: Optional[MayaClient] = None,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    now = now or datetime.now(timezone.utc)
    delivery_store.get_delivery_row(payload.deliveryId, columns="id")

    fee = processing_fee(payload.amount, payload.paymentMethod)
    total = round_money(payload.amount + fee)
    reference = _reference("SWIFTDASH", payload.deliveryId, now)
    first_name, last_name = _split_name(payload.customerName)
    fee_label = "3.5% + 15" if payload.paymentMethod == "creditCard" else "2.5%"
    redirect = settings.payment_redirect_base.rstrip("/")

    body = {
        "authorizationType": "NORMAL",
        "totalAmount": {"value": total, "currency": settings.currency},
        "buyer": {
            "firstName": first_name,
            "lastName": last_name,
            "contact": {
                "phone": payload.customerPhone,
                "email": payload.customerEmail or f"{customer_id}@swiftdash.app",
            },
        },
        "items": [
            {
                "name": "SwiftDash Delivery Service",
                "quantity": 1,
                "code": payload.deliveryId,
                "description": f"Delivery Fee: {payload.amount:.2f} + Processing Fee: {fee:.2f}",
                "amount": {"value": payload.amount, "currency": settings.currency},
            },
            {
                "name": "Payment Processing Fee",
                "quantity": 1,
                "code": "PROCESSING_FEE",
                "description": f"{fee_label} transaction fee",
                "amount": {"value": fee, "currency": settings.currency},
            },
        ],
        "redirectUrl": {
            outcome: f"{redirect}/{outcome}?deliveryId={payload.deliveryId}"
            for outcome in ("success", "failure", "cancel")
        },
        "requestReferenceNumber": reference,
        "metadata": {
            "deliveryId": payload.deliveryId,
            "customerId": customer_id,
            "paymentMethod": payload.paymentMethod,
            "deliveryFee": payload.amount,
            "processingFee": fee,
            "totalAmount": total,
            "timestamp": isoformat(now),
            **payload.metadata,
        },
    }

    logger.info(f"Creating checkout for delivery {payload.deliveryId}: fee {payload.amount}, processing {fee}, total {total}")
    try:
        data = _gateway(client).create_checkout(body)
    except MayaAPIError as exc:
        logger.error(f"Checkout for delivery {payload.deliveryId} failed: {exc.code} {exc.message}")
        raise PaymentGatewayError(exc.message, code=exc.code) from exc

    checkout_id = data.get("checkoutId")
    checkout_url = data.get("redirectUrl")
    expires_at = data.get("expiresAt")
    _record_after_gateway(
        payload.deliveryId,
        {
            "maya_checkout_id": checkout_id,
            # Becomes 'authorized' once the gateway confirms the hold.
            "payment_status": "pending",
            "payment_total_amount": total,
            "payment_processing_fee": fee,
            "payment_metadata": {
                "checkoutUrl": checkout_url,
                "expiresAt": expires_at,
                "paymentMethod": payload.paymentMethod,
                "requestReferenceNumber": reference,
            },
            "updated_at": isoformat(now),
        },
        "checkout",
    )
    return {
        "success": True,
        "checkoutId": checkout_id,
        "checkoutUrl": checkout_url,
        "expiresAt": expires_at,
        "totalAmount": total,
        "processingFee": fee,
    }


def _require_open_authorization(row: dict[str, Any], action: str) -> None:
    if not row.get("payment_authorization_id"):
        raise PaymentStateError("No payment authorization found for this delivery", code="NO_AUTHORIZATION")
    if row.get("payment_captured_at"):
        message = "Payment already captured" if action == "capture" else "Cannot void captured payment, refund required"
        raise PaymentStateError(message, code="ALREADY_CAPTURED")


def capture_payment(
    payload: CaptureRequest,
    *,
    client: Optional[MayaClient] = None,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    row = delivery_store.get_delivery_row(payload.deliveryId)
    _require_open_authorization(row, "capture")
    if row.get("payment_void_at"):
        raise PaymentStateError("Payment authorization was voided", code="AUTHORIZATION_VOIDED")
    if row.get("payment_status") != "authorized":
        raise PaymentStateError(
            f"Cannot capture payment in status: {row.get('payment_status')}",
            code="INVALID_STATUS",
        )

    now = now or datetime.now(timezone.utc)
    payment_id = row.get("maya_checkout_id") or row["payment_authorization_id"]
    capture_amount = payload.amount or row.get("payment_total_amount")
    metadata = dict(row.get("payment_metadata") or {})
    logger.info(f"Capturing payment {payment_id} for delivery {payload.deliveryId}, amount {capture_amount}")

    try:
        data = _gateway(client).capture(
            payment_id,
            reference=_reference("CAPTURE", payload.deliveryId, now),
            amount=payload.amount,
        )
    except MayaAPIError as exc:
        logger.error(f"Capture for delivery {payload.deliveryId} failed: {exc.code} {exc.message}")
        _record_after_gateway(
            payload.deliveryId,
            {
                "payment_error_message": exc.message,
                "payment_metadata": {
                    **metadata,
                    "captureError": exc.message,
                    "captureErrorCode": exc.code,
                    "captureErrorTimestamp": isoformat(now),
                },
                "updated_at": isoformat(now),
            },
            "capture error",
        )
        raise PaymentGatewayError(exc.message, code=exc.code) from exc

    captured_at = isoformat(now)
    _record_after_gateway(
        payload.deliveryId,
        {
            "maya_payment_id": data.get("id"),
            "payment_captured_at": captured_at,
            "payment_status": "paid",
            "payment_auto_void_at": None,
            "payment_processed_at": captured_at,
            "payment_metadata": {
                **metadata,
                "captureResponse": data,
                "capturedAt": captured_at,
                "capturedAmount": capture_amount,
            },
            "updated_at": captured_at,
        },
        "capture",
    )
    logger.info(f"Payment captured for delivery {payload.deliveryId}")
    return {
        "success": True,
        "paymentId": data.get("id"),
        "capturedAmount": capture_amount,
        "capturedAt": captured_at,
    }


def void_payment(
    payload: VoidRequest,
    *,
    client: Optional[MayaClient] = None,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    row = delivery_store.get_delivery_row(payload.deliveryId)
    _require_open_authorization(row, "void")
    if row.get("payment_void_at"):
        return {"success": True, "voidedAt": row["payment_void_at"], "reason": "Already voided"}
    if row.get("payment_status") != "authorized":
        raise PaymentStateError(
            f"Cannot void payment in status: {row.get('payment_status')}",
            code="INVALID_STATUS",
        )

    now = now or datetime.now(timezone.utc)
    authorization_id = row["payment_authorization_id"]
    metadata = dict(row.get("payment_metadata") or {})
    logger.info(f"Voiding authorization {authorization_id} for delivery {payload.deliveryId}: {payload.reason}")

    try:
        _gateway(client).void(
            authorization_id,
            reference=_reference("VOID", payload.deliveryId, now),
            metadata={
                "deliveryId": payload.deliveryId,
                "voidReason": payload.reason,
                "originalAmount": row.get("payment_total_amount"),
            },
        )
    except MayaAPIError as exc:
        if exc.code not in VOID_TERMINAL_CODES:
            logger.error(f"Void for delivery {payload.deliveryId} failed: {exc.code} {exc.message}")
            _record_after_gateway(
                payload.deliveryId,
                {
                    "payment_error_message": f"Void failed: {exc.message}",
                    "payment_metadata": {
                        **metadata,
                        "voidError": exc.message,
                        "voidErrorCode": exc.code,
                        "voidErrorTimestamp": isoformat(now),
                    },
                    "updated_at": isoformat(now),
                },
                "void error",
            )
            raise PaymentGatewayError(exc.message, code=exc.code) from exc
        logger.info(f"Authorization for delivery {payload.deliveryId} already released ({exc.code})")

    voided_at = isoformat(now)
    _record_after_gateway(
        payload.deliveryId,
        {
            "payment_void_at": voided_at,
            "payment_status": "voided",
            "payment_auto_void_at": None,
            "payment_error_message": payload.reason,
            "payment_metadata": {**metadata, "voidedAt": voided_at, "voidReason": payload.reason},
            "updated_at": voided_at,
        },
        "void",
    )
    return {"success": True, "voidedAt": voided_at, "reason": payload.reason}
