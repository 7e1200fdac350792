"""HTTP client for the Maya payment gateway."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ...config import settings

logger = logging.getLogger(__name__)


class MayaAPIError(Exception):
    def __init__(self, message: str, *, code: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code


class MayaClient:
    """Checkout, capture and void calls keyed by checkout/authorization id."""

    def __init__(
        self,
        secret_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.secret_key = secret_key if secret_key is not None else settings.maya_secret_key
        if not self.secret_key:
            raise ValueError("Maya secret key is not configured.")
        self.base_url = (base_url or settings.maya_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.maya_timeout_seconds
        self._transport = transport

    def _post(self, path: str, body: dict[str, Any], *, default_code: str) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        with httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            auth=(self.secret_key, ""),
            transport=self._transport,
        ) as client:
            try:
                response = client.post(url, json=body)
            except httpx.HTTPError as exc:
                raise MayaAPIError(f"Maya request failed: {exc}", code=default_code) from exc

        logger.info(f"Maya {path} responded {response.status_code}")
        if response.is_success:
            return response.json()

        message = "Maya request failed"
        code = default_code
        try:
            error_data = response.json()
            message = error_data.get("message") or error_data.get("error") or message
            code = error_data.get("code") or code
        except ValueError:
            message = response.text or message
        raise MayaAPIError(str(message), code=str(code), status_code=response.status_code)

    def create_checkout(self, body: dict[str, Any]) -> dict[str, Any]:
        return self._post("/checkout/v1/checkouts", body, default_code="MAYA_API_ERROR")

    def capture(
        self,
        payment_id: str,
        *,
        reference: str,
        amount: float | None = None,
        currency: str | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"requestReferenceNumber": reference}
        if amount is not None:
            body["totalAmount"] = {"value": amount, "currency": currency or settings.currency}
        return self._post(f"/payments/v1/payments/{payment_id}/capture", body, default_code="MAYA_CAPTURE_ERROR")

    def void(self, authorization_id: str, *, reference: str, metadata: dict[str, Any] | None = None) -> dict[str, Any]:
        body = {"requestReferenceNumber": reference, "metadata": metadata or {}}
        return self._post(f"/payments/v1/payment-rrns/{authorization_id}/void", body, default_code="MAYA_VOID_ERROR")
