"""Tests for the live Paytm adapter against a stubbed HTTP transport."""

import json

import httpx
import pytest
from payments.gateway import checksum
from payments.gateway.errors import GatewayError, WebhookValidationError
from payments.gateway.paytm_adapter import ENDPOINTS, PaytmGateway
from payments.gateway.port import GatewayOrderRequest, RefundInstruction, WebhookOutcome
from payments.gateway.settings import PaytmSettings

MERCHANT_KEY = "paytm-merchant-key"
SETTINGS = PaytmSettings(merchant_id="ZMSTORE0001", merchant_key=MERCHANT_KEY, backoff_seconds=0.01)

REQUEST = GatewayOrderRequest(
    order_id="ord-001",
    order_number="ZM-2024-000001",
    amount=2500,
    customer_name="Asha Rao",
    customer_email="asha@example.com",
    customer_phone="9876543210",
)


class Recorder:
    """Stub transport that records requests and replays queued responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def last_json(self):
        return json.loads(self.requests[-1].content)


def _gateway(recorder, sleeps=None):
    client = httpx.Client(base_url=SETTINGS.base_url, transport=httpx.MockTransport(recorder))
    sleep = sleeps.append if sleeps is not None else (lambda _: None)
    return PaytmGateway(SETTINGS, client=client, sleep=sleep)


def _initiated(txn_token="TOKEN-123"):
    return httpx.Response(
        200, json={"body": {"resultInfo": {"resultStatus": "S", "resultMsg": "Success"}, "txnToken": txn_token}}
    )


class TestCreateOrder:
    def test_live_credentials_disable_mock_mode(self):
        assert _gateway(Recorder()).is_mock is False

    def test_request_signature_matches_recomputed_checksum(self):
        recorder = Recorder(_initiated())
        gateway = _gateway(recorder)

        order = gateway.create_order(REQUEST)

        sent = recorder.last_json
        assert sent["body"]["txnAmount"] == {"value": "2500.00", "currency": "INR"}
        assert checksum.sign(sent["body"], MERCHANT_KEY) == sent["head"]["signature"]
        assert order.checksum == sent["head"]["signature"]

    def test_request_targets_initiate_endpoint(self):
        recorder = Recorder(_initiated())
        _gateway(recorder).create_order(REQUEST)

        request = recorder.requests[-1]
        assert request.method == "POST"
        assert request.url.path == ENDPOINTS["initiate_transaction"]
        assert request.url.params["mid"] == "ZMSTORE0001"
        assert request.url.params["orderId"] == "ZM-2024-000001"

    def test_returns_gateway_order(self):
        order = _gateway(Recorder(_initiated("TOKEN-XYZ"))).create_order(REQUEST)

        assert order.is_mock is False
        assert order.provider == "paytm"
        assert order.external_order_id == "ZM-2024-000001"
        assert order.txn_token == "TOKEN-XYZ"
        assert "showPaymentPage" in order.payment_url
        assert "orderId=ZM-2024-000001" in order.payment_url

    def test_customer_name_is_split(self):
        recorder = Recorder(_initiated())
        _gateway(recorder).create_order(REQUEST)
        user_info = recorder.last_json["body"]["userInfo"]
        assert user_info["firstName"] == "Asha"
        assert user_info["lastName"] == "Rao"

    def test_non_success_result_status_raises(self):
        response = httpx.Response(
            200, json={"body": {"resultInfo": {"resultStatus": "F", "resultMsg": "Invalid checksum"}}}
        )
        with pytest.raises(GatewayError) as exc:
            _gateway(Recorder(response)).create_order(REQUEST)
        assert exc.value.message == "Invalid checksum"
        assert exc.value.provider == "paytm"

    def test_http_error_raises(self):
        with pytest.raises(GatewayError):
            _gateway(Recorder(httpx.Response(500, json={"message": "boom"}))).create_order(REQUEST)

    def test_order_creation_is_not_retried(self):
        recorder = Recorder(httpx.ConnectError("refused"), _initiated())
        with pytest.raises(GatewayError) as exc:
            _gateway(recorder).create_order(REQUEST)
        assert exc.value.retryable is True
        assert len(recorder.requests) == 1


class TestVerifyTransaction:
    def _status(self, result_status, **body):
        return httpx.Response(
            200,
            json={"body": {"resultInfo": {"resultStatus": result_status, "resultMsg": "ok"}, **body}},
        )

    def test_success(self):
        recorder = Recorder(self._status("TXN_SUCCESS", txnId="TXN-1", txnAmount="2500.00"))
        result = _gateway(recorder).verify_transaction("ZM-2024-000001")

        assert result.success is True
        assert result.external_transaction_id == "TXN-1"
        assert result.amount == 2500.0
        sent = recorder.last_json
        assert checksum.verify(sent["body"], sent["head"]["signature"], MERCHANT_KEY)

    def test_failure(self):
        result = _gateway(Recorder(self._status("TXN_FAILURE"))).verify_transaction("ZM-2024-000001")
        assert result.success is False
        assert result.status == "TXN_FAILURE"

    def test_timeouts_are_retried_with_backoff(self):
        sleeps = []
        recorder = Recorder(
            httpx.ReadTimeout("slow"),
            httpx.ReadTimeout("slow"),
            self._status("TXN_SUCCESS", txnId="TXN-1"),
        )
        result = _gateway(recorder, sleeps).verify_transaction("ZM-2024-000001")

        assert result.success is True
        assert len(recorder.requests) == 3
        assert sleeps == [0.01, 0.02]

    def test_gives_up_after_configured_attempts(self):
        recorder = Recorder(*[httpx.ReadTimeout("slow")] * 3)
        with pytest.raises(GatewayError):
            _gateway(recorder).verify_transaction("ZM-2024-000001")
        assert len(recorder.requests) == SETTINGS.verify_attempts

    def test_error_responses_are_not_retried(self):
        recorder = Recorder(httpx.Response(400, json={"message": "bad request"}))
        with pytest.raises(GatewayError):
            _gateway(recorder).verify_transaction("ZM-2024-000001")
        assert len(recorder.requests) == 1


class TestRefund:
    def test_refund_request_is_signed(self):
        response = httpx.Response(200, json={"body": {"resultInfo": {"resultStatus": "TXN_SUCCESS"}}})
        recorder = Recorder(response)
        result = _gateway(recorder).process_refund(
            "TXN-1", RefundInstruction(order_id="ord-001", gateway_order_id="ZM-2024-000001", amount=500)
        )

        sent = recorder.last_json
        assert sent["body"]["refundAmount"] == "500.00"
        assert sent["body"]["txnId"] == "TXN-1"
        assert sent["body"]["refId"].startswith("REFUND_")
        assert checksum.verify(sent["body"], sent["head"]["signature"], MERCHANT_KEY)
        assert result.success is True
        assert result.refund_id == sent["body"]["refId"]

    def test_rejected_refund(self):
        response = httpx.Response(
            200, json={"body": {"resultInfo": {"resultStatus": "TXN_FAILURE", "resultMsg": "Refund limit"}}}
        )
        result = _gateway(Recorder(response)).process_refund(
            "TXN-1", RefundInstruction(order_id="ord-001", gateway_order_id="ZM-2024-000001", amount=500)
        )
        assert result.success is False
        assert result.message == "Refund limit"


class TestWebhooks:
    PAYLOAD = {"ORDERID": "ZM-2024-000001", "STATUS": "TXN_SUCCESS", "TXNID": "TXN-1", "TXNAMOUNT": "2500.00"}

    @pytest.mark.parametrize("field", ["ORDERID", "STATUS", "TXNID", "TXNAMOUNT"])
    def test_missing_required_field(self, field):
        payload = {key: value for key, value in self.PAYLOAD.items() if key != field}
        with pytest.raises(WebhookValidationError) as exc:
            _gateway(Recorder()).validate_webhook_payload(payload)
        assert exc.value.missing_field == field

    @pytest.mark.parametrize(
        "status, outcome",
        [
            ("TXN_SUCCESS", WebhookOutcome.SUCCESS),
            ("TXN_FAILURE", WebhookOutcome.FAILURE),
            ("PENDING", WebhookOutcome.PENDING),
            ("SOMETHING_NEW", WebhookOutcome.PENDING),
        ],
    )
    def test_status_outcomes(self, status, outcome):
        notification = _gateway(Recorder()).validate_webhook_payload({**self.PAYLOAD, "STATUS": status})
        assert notification.outcome is outcome
        assert notification.gateway_order_id == "ZM-2024-000001"
        assert notification.amount == 2500.0

    def test_embedded_checksum_verifies(self):
        payload = {**self.PAYLOAD, "CHECKSUMHASH": checksum.sign(self.PAYLOAD, MERCHANT_KEY)}
        assert _gateway(Recorder()).verify_webhook_signature(payload, None) is True

    def test_header_signature_verifies(self):
        signature = checksum.sign(self.PAYLOAD, MERCHANT_KEY)
        assert _gateway(Recorder()).verify_webhook_signature(self.PAYLOAD, signature) is True

    def test_altered_signature_is_rejected(self):
        signature = checksum.sign(self.PAYLOAD, MERCHANT_KEY)
        altered = ("0" if signature[0] != "0" else "1") + signature[1:]
        assert _gateway(Recorder()).verify_webhook_signature(self.PAYLOAD, altered) is False

    def test_tampered_payload_is_rejected(self):
        payload = {**self.PAYLOAD, "CHECKSUMHASH": checksum.sign(self.PAYLOAD, MERCHANT_KEY)}
        payload["TXNAMOUNT"] = "1.00"
        assert _gateway(Recorder()).verify_webhook_signature(payload, None) is False


class TestIntrospection:
    def test_configuration_status_masks_merchant_id(self):
        status = _gateway(Recorder()).configuration_status()
        assert status == {
            "provider": "paytm",
            "configured": True,
            "mock_mode": False,
            "base_url": SETTINGS.base_url,
            "merchant_id": "ZMST***",
        }

    def test_live_methods_are_enabled(self):
        methods = _gateway(Recorder()).payment_methods()
        assert {method["id"] for method in methods} == {"paytm", "paytm_upi", "paytm_card", "paytm_netbanking"}
        assert all(method["enabled"] for method in methods)
