from unittest.mock import patch

import pytest
import requests

from conftest import FakeResponse, FakeSession
from fxengine.core.config import Settings
from fxengine.domain.errors import ConversionError, ErrorKind
from fxengine.infra.fees.fee_providers import (
    RemoteFeeProvider,
    StaticFeeProvider,
    build_fee_provider,
)


def test_static_fee():
    assert StaticFeeProvider(0.005).fee_percent("USD", "BRL") == 0.005


def test_remote_fee_sends_pair_and_short_timeout():
    session = FakeSession(FakeResponse(200, {"percent": 0.01}))
    provider = RemoteFeeProvider("http://fees.test/fee", session=session)

    assert provider.fee_percent("usd", "brl") == 0.01
    call = session.calls[0]
    assert call["url"] == "http://fees.test/fee"
    assert call["params"] == {"from": "USD", "to": "BRL"}
    assert call["timeout"] == 5.0


def test_remote_fee_without_url_is_zero():
    session = FakeSession()
    assert RemoteFeeProvider("", session=session).fee_percent("USD", "BRL") == 0.0
    assert session.calls == []


@pytest.mark.parametrize("body", ["not json", {"rate": 0.1}, {"percent": "abc"}, {"percent": None}])
def test_remote_fee_decode_errors(body):
    provider = RemoteFeeProvider("http://fees.test", session=FakeSession(FakeResponse(200, body)))

    with pytest.raises(ConversionError) as exc:
        provider.fee_percent("USD", "BRL")

    assert exc.value.kind is ErrorKind.DECODE


def test_remote_fee_status_error():
    provider = RemoteFeeProvider("http://fees.test", session=FakeSession(FakeResponse(500, "boom")))

    with pytest.raises(ConversionError) as exc:
        provider.fee_percent("USD", "BRL")

    assert exc.value.status_code == 500


def test_remote_fee_transport_error():
    provider = RemoteFeeProvider("http://fees.test", session=FakeSession(requests.ConnectionError("refused")))

    with pytest.raises(requests.ConnectionError):
        provider.fee_percent("USD", "BRL")


class TestBuildFeeProvider:
    def test_remote_wins_over_static(self):
        settings = Settings(FEE_API_URL="http://fees.test", EXCHANGE_FEE_PERCENT=0.02)
        assert isinstance(build_fee_provider(settings), RemoteFeeProvider)

    def test_static_when_percent_set(self):
        provider = build_fee_provider(Settings(FEE_API_URL="", EXCHANGE_FEE_PERCENT=0.02))
        assert isinstance(provider, StaticFeeProvider)
        assert provider.percent == 0.02

    def test_none_when_unconfigured(self):
        assert build_fee_provider(Settings(FEE_API_URL="", EXCHANGE_FEE_PERCENT=0)) is None


def test_remote_fee_without_session_uses_requests_get():
    provider = RemoteFeeProvider("http://fees.test/fee")

    with patch(
        "fxengine.infra.fees.fee_providers.requests.get",
        return_value=FakeResponse(200, {"percent": 0.02}),
    ) as get:
        assert provider.fee_percent("usd", "brl") == 0.02

    get.assert_called_once_with(
        "http://fees.test/fee", params={"from": "USD", "to": "BRL"}, timeout=5.0
    )
