"""
Tests for SabPaisa request building, sessions and callbacks.
"""

from datetime import datetime, timezone

import pytest

from backend.config import settings
from backend.services import payment_service
from backend.services.payment_service import (
    PaymentConfigError,
    build_request_string,
    callback_url,
    create_payment_init,
    handle_callback,
    take_session,
    update_invoice_status,
)
from backend.utils.sabpaisa import decrypt, encrypt, parse_response

KEY = "0123456789abcdef"
IV = "fedcba9876543210"


def _callback(**params):
    return encrypt("&".join(f"{k}={v}" for k, v in params.items()), KEY, IV)


class TestCipher:

    def test_round_trip(self):
        payload = "payerName=Asha Rao&amount=250"
        encrypted = encrypt(payload, KEY, IV)

        assert len(encrypted) % 32 == 0
        assert decrypt(encrypted, KEY, IV) == payload

    def test_short_key_is_zero_padded(self):
        assert encrypt("x", "abc", "def") == encrypt("x", "abc0000000000000", "def0000000000000")

    def test_garbage_rejected(self):
        with pytest.raises(ValueError):
            decrypt("not-hex", KEY, IV)

    def test_parse_response_unquotes_values(self):
        assert parse_response("statusCode=0000&sabpaisaMessage=Payment%20Successful&empty=&junk") == {
            "statusCode": "0000",
            "sabpaisaMessage": "Payment Successful",
            "empty": "",
        }


class TestBuildRequest:

    def test_fields(self):
        plain = build_request_string(
            payer_name=" Asha ",
            payer_email="asha@example.com",
            payer_mobile="+91 98765-43210",
            amount=249.6,
            client_txn_id="TXN1",
            callback="https://api.example.com/payments/callback",
            invoice_id="inv-1",
            trans_date=datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc),
        )
        params = dict(pair.split("=", 1) for pair in plain.split("&"))

        assert params["payerName"] == "Asha"
        assert params["payerMobile"] == "9876543210"
        assert params["amount"] == "250"
        assert params["clientCode"] == "TEST01"
        assert params["channelId"] == "M"
        assert params["transDate"] == "2026-03-01 09:30:00"
        assert params["udf1"] == "inv-1"

    @pytest.mark.parametrize("amount, expected", [(2.5, "3"), (100.5, "101"), (100.49, "100"), (0.5, "1")])
    def test_amount_rounds_half_up(self, amount, expected):
        plain = build_request_string(
            payer_name="A", payer_email="a@example.com", payer_mobile="9876543210",
            amount=amount, client_txn_id="T", callback="https://x",
        )
        params = dict(pair.split("=", 1) for pair in plain.split("&"))

        assert params["amount"] == expected

    def test_missing_credentials(self, monkeypatch):
        monkeypatch.setattr(settings, "SABPAISA_AUTH_KEY", "")

        with pytest.raises(PaymentConfigError, match="SABPAISA_AUTH_KEY"):
            build_request_string(
                payer_name="A", payer_email="a@example.com", payer_mobile="9876543210",
                amount=1, client_txn_id="T", callback="https://x",
            )

    def test_callback_url_defaults_to_this_server(self, monkeypatch):
        monkeypatch.setattr(settings, "SABPAISA_CALLBACK_URL", "")
        assert callback_url("http://testserver/") == "http://testserver/payments/callback"

        monkeypatch.setattr(settings, "SABPAISA_CALLBACK_URL", " https://api.example.com/cb ")
        assert callback_url("http://testserver/") == "https://api.example.com/cb"


class TestSessions:

    def test_session_is_single_use(self):
        init = create_payment_init(
            payer_name="Asha",
            payer_email="asha@example.com",
            payer_mobile="9876543210",
            amount=250,
            callback="https://api.example.com/payments/callback",
            invoice_id="inv-1",
        )

        assert init.redirect_url == f"/payments/go/{init.sid}"
        assert init.payment_url.endswith("/")
        assert "udf1=inv-1" in decrypt(init.enc_data, KEY, IV)

        session = take_session(init.sid)
        assert session.enc_data == init.enc_data
        assert take_session(init.sid) is None

    def test_client_txn_id_is_kept(self):
        init = create_payment_init(
            payer_name="Asha", payer_email="asha@example.com", payer_mobile="9876543210",
            amount=1, callback="https://x", client_txn_id="MYTXN",
        )
        assert init.client_txn_id == "MYTXN"
        payment_service.take_session(init.sid)


class TestCallback:

    def test_success(self):
        result = handle_callback(_callback(
            statusCode="0000",
            clientTxnId="TXN1",
            sabpaisaTxnId="SP1",
            amount="250",
            paidAmount="250",
            sabpaisaMessage="Payment%20Successful",
            udf1="inv-1",
        ))

        assert result.is_success
        assert result.invoice_id == "inv-1"
        assert result.message == "Payment Successful"

    def test_failure_without_invoice(self):
        result = handle_callback(_callback(statusCode="0300", clientTxnId="TXN1"))

        assert not result.is_success
        assert result.invoice_id is None

    @pytest.mark.asyncio
    async def test_update_invoice_status(self, fake_db):
        [invoice] = fake_db.seed("invoices", {"user_id": "alice", "number": "INV-1", "status": "pending"})

        assert await update_invoice_status(fake_db, invoice["id"], "paid") is True
        assert fake_db.rows("invoices")[0]["status"] == "paid"
        assert await update_invoice_status(fake_db, "missing", "paid") is False
