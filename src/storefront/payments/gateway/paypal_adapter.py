"""PayPal payment gateway adapter.

The buyer approves a PayPal order in the browser; the approved order id
arrives here as the payment source and is captured. Authentication uses
OAuth client credentials.
"""

import httpx

from storefront.exceptions import PaymentInfrastructureError
from storefront.payments.gateway.port import ChargeResult, PaymentGateway

DEFAULT_API_BASE = "https://api-m.paypal.com"


class PayPalGateway(PaymentGateway):
    """Production PayPal gateway adapter."""

    name = "paypal"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        api_base: str = DEFAULT_API_BASE,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not client_id or not client_secret:
            raise PaymentInfrastructureError(self.name, "missing client credentials")
        self.client_id = client_id
        self.client_secret = client_secret
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(base_url=self.api_base, timeout=self.timeout, transport=self._transport)

    def _access_token(self, client: httpx.Client) -> str:
        response = client.post(
            "/v1/oauth2/token",
            data={"grant_type": "client_credentials"},
            auth=(self.client_id, self.client_secret),
        )
        if response.status_code != 200:
            raise PaymentInfrastructureError(self.name, f"authentication failed ({response.status_code})")
        return response.json()["access_token"]

    def create_charge(
        self,
        amount: float,
        currency: str,
        payment_method_type: str,
        source: str | None,
        idempotency_key: str,
    ) -> ChargeResult:
        if not source:
            return ChargeResult(success=False, gateway_status="failed", failure_reason="Missing PayPal order token")

        try:
            with self._client() as client:
                token = self._access_token(client)
                response = client.post(
                    f"/v2/checkout/orders/{source}/capture",
                    headers={
                        "Authorization": f"Bearer {token}",
                        "Content-Type": "application/json",
                        "PayPal-Request-Id": idempotency_key,
                    },
                )
        except httpx.HTTPError as e:
            raise PaymentInfrastructureError(self.name, str(e)) from e

        if response.status_code >= 500 or response.status_code in (401, 403):
            raise PaymentInfrastructureError(self.name, f"unexpected status {response.status_code}")

        payload = response.json()
        if response.status_code >= 400:
            details = payload.get("details") or [{}]
            return ChargeResult(
                success=False,
                gateway_status=payload.get("name", "failed"),
                failure_reason=details[0].get("description") or payload.get("message", "Payment declined"),
                raw=payload,
            )

        if payload.get("status") != "COMPLETED":
            return ChargeResult(
                success=False,
                gateway_transaction_id=payload.get("id"),
                gateway_status=payload.get("status"),
                failure_reason="PayPal payment was not completed",
                raw=payload,
            )

        captures = payload.get("purchase_units", [{}])[0].get("payments", {}).get("captures", [])
        transaction_id = captures[0]["id"] if captures else payload["id"]
        return ChargeResult(
            success=True,
            gateway_transaction_id=transaction_id,
            gateway_status=payload["status"],
            gateway_response="Capture completed",
            raw=payload,
        )
