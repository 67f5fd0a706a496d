"""Unit tests for HttpPaymentGateway using httpx.MockTransport."""

from urllib.parse import parse_qs

import httpx
import pytest

from medibook.core.domain import PaymentGatewayException
from medibook.domains.scheduling.infrastructure.gateways import HttpPaymentGateway

BASE_URL = "https://payments.test/v1"


def make_gateway(handler) -> HttpPaymentGateway:
    client = httpx.AsyncClient(
        base_url=BASE_URL,
        headers={"Authorization": "Bearer sk_test"},
        transport=httpx.MockTransport(handler),
    )
    return HttpPaymentGateway(BASE_URL, "sk_test", currency="usd", client=client)


def form(request: httpx.Request) -> dict[str, str]:
    return {key: values[0] for key, values in parse_qs(request.content.decode()).items()}


@pytest.mark.unit
class TestHttpPaymentGateway:
    """Tests for outbound transfer and refund calls."""

    @pytest.mark.asyncio
    async def test_create_transfer(self) -> None:
        """Should post form data with the idempotency key header."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"id": "tr_123", "status": "pending"})

        gateway = make_gateway(handler)
        result = await gateway.create_transfer(9500, "acct_doc1", "payout-3", metadata={"settlement_id": "3"})
        await gateway.aclose()

        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/v1/transfers"
        assert request.headers["Idempotency-Key"] == "payout-3"
        assert request.headers["Authorization"] == "Bearer sk_test"
        assert form(request) == {
            "amount": "9500",
            "currency": "usd",
            "destination": "acct_doc1",
            "metadata[settlement_id]": "3",
        }
        assert result.transfer_ref == "tr_123"
        assert result.status == "pending"

    @pytest.mark.asyncio
    async def test_create_refund(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"id": "re_1", "status": "succeeded"})

        gateway = make_gateway(handler)
        result = await gateway.create_refund("ch_1", 5000, "refund-3")

        assert seen[0].url.path == "/v1/refunds"
        assert seen[0].headers["Idempotency-Key"] == "refund-3"
        assert form(seen[0]) == {"charge": "ch_1", "amount": "5000"}
        assert result.refund_ref == "re_1"

    @pytest.mark.asyncio
    async def test_error_response_raises_with_provider_message(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error": {"message": "Insufficient funds"}})

        gateway = make_gateway(handler)

        with pytest.raises(PaymentGatewayException) as exc_info:
            await gateway.create_transfer(9500, "acct_doc1", "payout-3")

        assert exc_info.value.code == "PAYMENT_GATEWAY_ERROR"
        assert exc_info.value.operation == "create_transfer"
        assert "Insufficient funds" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_unauthorized(self) -> None:
        gateway = make_gateway(lambda request: httpx.Response(401, json={}))

        with pytest.raises(PaymentGatewayException) as exc_info:
            await gateway.create_refund("ch_1", 5000, "refund-3")

        assert "key" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_timeout_is_wrapped(self) -> None:
        """Should translate transport timeouts into PaymentGatewayException."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        gateway = make_gateway(handler)

        with pytest.raises(PaymentGatewayException) as exc_info:
            await gateway.create_transfer(9500, "acct_doc1", "payout-3")

        assert isinstance(exc_info.value.original_error, httpx.TimeoutException)

    @pytest.mark.asyncio
    async def test_non_json_success_reply_is_wrapped(self) -> None:
        """Should raise PaymentGatewayException so the sweep records the failure."""
        gateway = make_gateway(lambda request: httpx.Response(200, text="ok"))

        with pytest.raises(PaymentGatewayException) as exc_info:
            await gateway.create_transfer(9500, "acct_doc1", "payout-3")

        assert exc_info.value.operation == "create_transfer"
        assert isinstance(exc_info.value.original_error, ValueError)

    @pytest.mark.parametrize("body", [{"status": "pending"}, [{"id": "tr_1"}]])
    @pytest.mark.asyncio
    async def test_reply_without_id_is_wrapped(self, body) -> None:
        gateway = make_gateway(lambda request: httpx.Response(200, json=body))

        with pytest.raises(PaymentGatewayException) as exc_info:
            await gateway.create_refund("ch_1", 5000, "refund-3")

        assert exc_info.value.code == "PAYMENT_GATEWAY_ERROR"
