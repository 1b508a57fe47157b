# src/infrastructure/integrations/payment_gateway.py

import logging

import razorpay
import requests

from src.domain.exceptions import GatewayError, InvalidInputError

logger = logging.getLogger(__name__)

_SDK_ERRORS = (
    razorpay.errors.BadRequestError,
    razorpay.errors.GatewayError,
    razorpay.errors.ServerError,
    requests.RequestException,
)


class RazorpayGateway:
    """
    Checkout sessions are Razorpay payment links: the customer is redirected
    to the hosted link and comes back to the callback URL once paid.
    """

    def __init__(
        self,
        key_id: str | None,
        key_secret: str | None,
        timeout: float = 15.0,
        client: razorpay.Client | None = None,
    ):
        self.key_id = key_id
        self.key_secret = key_secret
        self.timeout = timeout
        self._client = client

    def _razorpay_client(self) -> razorpay.Client:
        if self._client is not None:
            return self._client
        if not self.key_id or not self.key_secret:
            raise GatewayError(
                "Razorpay keys not configured. Set RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET."
            )
        self._client = razorpay.Client(auth=(self.key_id, self.key_secret))
        return self._client

    def create_checkout_session(
        self,
        amount_minor_units: int,
        currency: str,
        description: str,
        success_url: str,
        cancel_url: str,
        reference_id: str | None = None,
    ) -> str:
        if amount_minor_units <= 0:
            raise InvalidInputError("Checkout amount must be positive")

        payload = {
            "amount": amount_minor_units,
            "currency": currency.upper(),
            "description": description,
            "callback_url": success_url,
            "callback_method": "get",
            "notes": {"cancel_url": cancel_url},
        }
        if reference_id:
            payload["reference_id"] = reference_id

        client = self._razorpay_client()
        try:
            link = client.payment_link.create(payload, timeout=self.timeout)
        except _SDK_ERRORS as exc:
            logger.warning("Payment link creation failed: %s", exc)
            raise GatewayError("Payment session could not be created") from exc

        url = link.get("short_url") if isinstance(link, dict) else None
        if not url:
            raise GatewayError("Payment gateway returned no checkout URL")
        return url

    def verify_callback(self, params: dict) -> None:
        """
        Raises InvalidInputError when the callback signature does not match.
        """
        required = (
            "payment_link_id",
            "payment_link_reference_id",
            "payment_link_status",
            "razorpay_payment_id",
            "razorpay_signature",
        )
        missing = [key for key in required if key not in params]
        if missing:
            raise InvalidInputError(f"Missing payment callback fields: {', '.join(missing)}")

        client = self._razorpay_client()
        try:
            client.utility.verify_payment_link_signature(
                {key: params[key] for key in required}
            )
        except razorpay.errors.SignatureVerificationError as exc:
            raise InvalidInputError("Invalid payment signature") from exc

        if params["payment_link_status"] != "paid":
            raise InvalidInputError(
                f"Payment not completed (status {params['payment_link_status']})"
            )
