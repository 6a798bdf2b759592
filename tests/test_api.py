import pytest
from fastapi.testclient import TestClient

from conftest import FakeCache, FakeResponse, FakeSession
from fxengine.core.config import Settings
from fxengine.core.rate_limit import limiter
from fxengine.domain.errors import ConversionError, ErrorKind
from fxengine.infra.fees.fee_providers import StaticFeeProvider
from fxengine.infra.providers.base import HttpClientConfig
from fxengine.infra.providers.exchangerate_host import ExchangerateHostProvider
from fxengine.main import create_app


class StubProvider:
    name = "stub"

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def convert(self, from_currency, to_currency, amount_cents, ctx=None):
        self.calls.append((from_currency, to_currency, amount_cents))
        if self.error is not None:
            raise self.error
        return self.result


def make_client(provider, fee_provider=None, cache=None):
    app = create_app(
        settings=Settings(EXCHANGE_PROVIDER="stub"),
        cache=cache if cache is not None else FakeCache(),
        provider=provider,
        fee_provider=fee_provider,
    )
    return TestClient(app)


def test_root_and_health():
    client = make_client(StubProvider(1))

    assert client.get("/").json()["status"] == "ok"
    health = client.get("/api/v1/health").json()
    assert health["status"] == "ok"
    assert health["provider"] == "stub"
    assert health["cache"] == "operational"


def test_convert_with_fee():
    provider = StubProvider(50325)
    client = make_client(provider, StaticFeeProvider(0.005))

    resp = client.get("/api/v1/convert", params={"from": "usd", "to": "brl", "amount": "100.00"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["from"] == "USD"
    assert body["to"] == "BRL"
    assert body["amount_cents"] == 10000
    assert body["result_cents"] == 50325
    assert body["fee_amount_cents"] == 252
    assert body["net_result_cents"] == 50073
    assert provider.calls == [("USD", "BRL", 10000)]


def test_end_to_end_with_real_provider_and_cache():
    session = FakeSession(FakeResponse(200, {"success": True, "rates": {"BRL": 12.345}}))
    cache = FakeCache()
    provider = ExchangerateHostProvider(
        cache=cache, config=HttpClientConfig("http://rates.test"), session=session
    )
    client = make_client(provider, cache=cache)

    first = client.get("/api/v1/convert", params={"from": "USD", "to": "BRL", "amount": "1000"})
    second = client.get("/api/v1/convert", params={"from": "USD", "to": "BRL", "amount": "10.00"})

    assert first.json()["result_cents"] == 12345
    assert second.json() == first.json()
    assert len(session.calls) == 1
    assert "convert:USD:BRL:1000" in cache.data


@pytest.mark.parametrize(
    "params",
    [{"to": "BRL", "amount": "1"}, {"from": "USD", "amount": "1"}, {"from": "USD", "to": "BRL"}],
)
def test_missing_parameters(params):
    resp = make_client(StubProvider(1)).get("/api/v1/convert", params=params)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "missing parameters"


@pytest.mark.parametrize("amount", ["ten", "1_000"])
def test_invalid_amount(amount):
    resp = make_client(StubProvider(1)).get(
        "/api/v1/convert", params={"from": "USD", "to": "BRL", "amount": amount}
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "invalid amount"


@pytest.mark.parametrize(
    "error,status",
    [
        (ConversionError.missing_api_key("no key"), 502),
        (ConversionError.currency_not_found("XYZ"), 422),
        (ConversionError(ErrorKind.CANCELLED, "conversion deadline exceeded"), 504),
        (ConversionError(ErrorKind.RATE_WINDOW_EXHAUSTED, "no bcb rate found"), 500),
        (ConversionError.upstream_status("bcb", 503, "down"), 500),
    ],
)
def test_error_mapping(error, status):
    resp = make_client(StubProvider(error=error)).get(
        "/api/v1/convert", params={"from": "USD", "to": "XYZ", "amount": "1"}
    )
    assert resp.status_code == status


def test_missing_key_message_points_to_setting():
    resp = make_client(StubProvider(error=ConversionError.missing_api_key("x"))).get(
        "/api/v1/convert", params={"from": "USD", "to": "BRL", "amount": "1"}
    )
    assert "EXCHANGE_API_KEY" in resp.json()["detail"]


def test_rate_limit_comes_from_app_settings():
    limiter.reset()
    app = create_app(
        settings=Settings(EXCHANGE_PROVIDER="stub", RATE_LIMIT="2/minute"),
        cache=FakeCache(),
        provider=StubProvider(100),
    )
    client = TestClient(app)
    params = {"from": "USD", "to": "BRL", "amount": "1"}

    statuses = [client.get("/api/v1/convert", params=params).status_code for _ in range(3)]

    assert statuses == [200, 200, 429]
    assert client.get("/api/v1/health").status_code == 200
    limiter.reset()
