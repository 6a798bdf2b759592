"""
Fixtures compartidas: cache en memoria y sesión HTTP falsa.

Ningún test toca la red; los proveedores reciben una FakeSession que
devuelve respuestas encoladas y registra cada URL pedida.
"""
import json

import pytest


class FakeCache:
    def __init__(self):
        self.data = {}
        self.ttls = {}
        self.sets = 0

    def get(self, key):
        return self.data.get(key, "")

    def set(self, key, value, ttl):
        self.data[key] = value
        self.ttls[key] = ttl
        self.sets += 1


class BrokenCache:
    """Redis caído: todas las operaciones fallan."""

    def get(self, key):
        raise ConnectionError("redis down")

    def set(self, key, value, ttl):
        raise ConnectionError("redis down")


class FakeResponse:
    def __init__(self, status_code=200, body=""):
        self.status_code = status_code
        self.text = body if isinstance(body, str) else json.dumps(body)

    def json(self):
        return json.loads(self.text)


class FakeSession:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        if not self.responses:
            raise AssertionError(f"unexpected request to {url}")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    @property
    def urls(self):
        return [c["url"] for c in self.calls]


def ptax_body(sell, buy=None, when="2025-09-19 13:05:00.000"):
    return json.dumps(
        {
            "value": [
                {
                    "cotacaoCompra": buy if buy is not None else sell - 0.01,
                    "cotacaoVenda": sell,
                    "dataHoraCotacao": when,
                }
            ]
        }
    )


EMPTY_PTAX = json.dumps({"value": []})


@pytest.fixture
def cache():
    return FakeCache()


@pytest.fixture
def session():
    return FakeSession()

