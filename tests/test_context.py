import time

import pytest

from fxengine.domain.context import ConversionContext
from fxengine.domain.errors import ConversionError, ErrorKind


def test_no_deadline_passes_timeout_through():
    ctx = ConversionContext()
    ctx.check()
    assert ctx.remaining() is None
    assert ctx.timeout_for(10.0) == 10.0


def test_expired_deadline():
    ctx = ConversionContext(timeout=0.0)
    with pytest.raises(ConversionError) as exc:
        ctx.check()
    assert exc.value.kind is ErrorKind.CANCELLED


def test_sleep_past_deadline_aborts_early():
    ctx = ConversionContext(timeout=0.05)
    start = time.monotonic()
    with pytest.raises(ConversionError):
        ctx.sleep(5)
    assert time.monotonic() - start < 1


def test_sleep_after_cancel():
    ctx = ConversionContext()
    ctx.cancel()
    assert ctx.cancelled
    with pytest.raises(ConversionError):
        ctx.sleep(5)
