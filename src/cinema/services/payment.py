"""
Payment gateway contract and implementations

The reservation coordinator uses two-phase capture: ``authorize`` places a
non-capturing pre-auth, then ``capture`` runs only once every seat is
secured, and ``void`` releases the pre-auth when the seats are lost.
"""
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

import httpx

from cinema.core import clock
from cinema.core.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CardDetails:
    number: str
    expiry: date
    cvc: str
    name_on_card: str
    country: str = ""

    @property
    def normalized_number(self) -> str:
        return self.number.replace(" ", "").replace("-", "")

    @property
    def masked_number(self) -> str:
        return f"****{self.normalized_number[-4:]}"


@dataclass(frozen=True)
class PaymentAuthorization:
    approved: bool
    transaction_id: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def approve(cls, transaction_id: str) -> "PaymentAuthorization":
        return cls(approved=True, transaction_id=transaction_id)

    @classmethod
    def decline(cls, reason: str) -> "PaymentAuthorization":
        return cls(approved=False, reason=reason)


class PaymentGateway(ABC):
    """Opaque, network-fallible payment collaborator"""

    @abstractmethod
    async def authorize(self, amount: Decimal, card: CardDetails) -> PaymentAuthorization:
        ...

    @abstractmethod
    async def capture(self, transaction_id: str) -> None:
        ...

    @abstractmethod
    async def void(self, transaction_id: str) -> None:
        ...


class SimulatedPaymentGateway(PaymentGateway):
    """
    In-process gateway for development and tests.

    Approves any unexpired 16-digit card. Card numbers ending in 0002 are
    declined with insufficient funds.
    """

    DECLINED_SUFFIX = "0002"

    def __init__(self):
        self.authorized = {}
        self.captured = set()
        self.voided = set()

    async def authorize(self, amount: Decimal, card: CardDetails) -> PaymentAuthorization:
        number = card.normalized_number
        if len(number) != 16 or not number.isdigit():
            return PaymentAuthorization.decline("Card number must be 16 digits.")
        if card.expiry < clock.utcnow().date():
            return PaymentAuthorization.decline("Card has expired.")
        if number.endswith(self.DECLINED_SUFFIX):
            return PaymentAuthorization.decline("Insufficient funds.")

        transaction_id = f"sim_{uuid.uuid4().hex}"
        self.authorized[transaction_id] = amount
        logger.info(f"Authorized {amount} on card {card.masked_number}")
        return PaymentAuthorization.approve(transaction_id)

    async def capture(self, transaction_id: str) -> None:
        if transaction_id not in self.authorized:
            raise ValueError(f"Unknown transaction {transaction_id}")
        self.captured.add(transaction_id)

    async def void(self, transaction_id: str) -> None:
        if transaction_id not in self.authorized:
            raise ValueError(f"Unknown transaction {transaction_id}")
        self.voided.add(transaction_id)


class HttpPaymentGateway(PaymentGateway):
    """Client for a JSON payment gateway (POST /authorizations, /capture, /void)"""

    def __init__(self, base_url: str, timeout: float, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    async def authorize(self, amount: Decimal, card: CardDetails) -> PaymentAuthorization:
        payload = {
            "amount": str(amount),
            "currency": "EUR",
            "capture": False,
            "card": {
                "number": card.normalized_number,
                "expiry": card.expiry.isoformat(),
                "cvc": card.cvc,
                "name": card.name_on_card,
                "country": card.country,
            },
        }
        try:
            async with self._client() as client:
                response = await client.post("/authorizations", json=payload)
        except httpx.HTTPError as e:
            logger.warning(f"Payment gateway unreachable: {e}")
            return PaymentAuthorization.decline("Payment gateway unavailable.")

        if response.status_code >= 500:
            return PaymentAuthorization.decline("Payment gateway error.")

        data = response.json()
        if data.get("status") == "approved":
            return PaymentAuthorization.approve(data["transaction_id"])
        return PaymentAuthorization.decline(data.get("reason") or "Payment declined.")

    async def capture(self, transaction_id: str) -> None:
        async with self._client() as client:
            response = await client.post(f"/authorizations/{transaction_id}/capture")
            response.raise_for_status()

    async def void(self, transaction_id: str) -> None:
        async with self._client() as client:
            response = await client.post(f"/authorizations/{transaction_id}/void")
            response.raise_for_status()


_gateway: Optional[PaymentGateway] = None


def get_payment_gateway() -> PaymentGateway:
    """Process-wide gateway chosen by PAYMENT_PROVIDER"""
    global _gateway
    if _gateway is None:
        if settings.PAYMENT_PROVIDER == "http":
            _gateway = HttpPaymentGateway(settings.PAYMENT_GATEWAY_URL, settings.PAYMENT_TIMEOUT_SECONDS)
        else:
            _gateway = SimulatedPaymentGateway()
    return _gateway
