# fxengine/infra/providers/bcb_ptax.py
"""
Cotizaciones PTAX del Banco Central do Brasil (API OData "olinda").

BCB publica BRL por unidad de moneda extranjera (cotacaoVenda) sólo en
días hábiles, así que la búsqueda retrocede día por día hasta
`max_back_days`. Cada día admite `max_retries` reintentos ante 5xx con
backoff exponencial (2^intento segundos). Entre dos monedas extranjeras
se usa BRL como pivote.
"""
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Callable, Iterator, List, Optional

import requests
from pydantic import BaseModel, ValidationError

from fxengine.domain.context import ConversionContext, background
from fxengine.domain.errors import ConversionError, ErrorKind
from fxengine.domain.money import apply_rate, divide_by_rate, normalize_currency
from fxengine.domain.ports import Cache
from fxengine.infra.providers.base import HttpClientConfig, HttpRateProvider, is_success

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://olinda.bcb.gov.br/olinda/servico/PTAX/versao/v1/odata/"
PIVOT = "BRL"


class PtaxQuote(BaseModel):
    cotacaoCompra: float = 0.0
    cotacaoVenda: float = 0.0
    dataHoraCotacao: str = ""


class PtaxResponse(BaseModel):
    value: List[PtaxQuote] = []


class AttemptOutcome(str, Enum):
    SUCCESS = "success"
    RETRYABLE = "retryable"
    FATAL = "fatal"


@dataclass
class AttemptResult:
    outcome: AttemptOutcome
    body: str = ""
    status_code: Optional[int] = None
    error: Optional[ConversionError] = None


class DayOutcome(str, Enum):
    FOUND = "found"
    EMPTY = "empty"


@dataclass
class DayResult:
    outcome: DayOutcome
    rate: float = 0.0
    body: str = ""


def parse_ptax(raw: str) -> List[PtaxQuote]:
    """
    Decodifica la respuesta PTAX. Algunas respuestas vienen envueltas en
    /* ... */; en ese caso se quita el envoltorio y se intenta una vez más.
    """
    try:
        return PtaxResponse.model_validate_json(raw).value
    except ValidationError as first_error:
        text = raw.strip()
        if text.startswith("/*") and text.endswith("*/"):
            inner = text[2:-2].strip()
            try:
                return PtaxResponse.model_validate_json(inner).value
            except ValidationError:
                pass
        raise ConversionError(
            ErrorKind.DECODE, f"decode bcb response: {first_error.errors()[0]['msg']}"
        ) from first_error


class BcbPtaxProvider(HttpRateProvider):
    name = "bcb"

    def __init__(
        self,
        cache: Optional[Cache] = None,
        config: Optional[HttpClientConfig] = None,
        max_retries: int = 3,
        max_back_days: int = 0,
        session: Optional[requests.Session] = None,
        clock: Callable[[], date] = date.today,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        config = config or HttpClientConfig(DEFAULT_BASE_URL)
        base_url = (config.base_url or DEFAULT_BASE_URL).rstrip("/") + "/"
        super().__init__(HttpClientConfig(base_url, config.timeout), cache, session)
        self.max_retries = max(0, max_retries)
        self.max_back_days = max(0, max_back_days)
        self.clock = clock
        self._sleep = sleep

    def build_url(self, currency: str, day: date) -> str:
        cur = currency.upper()
        d = day.strftime("%m-%d-%Y")
        if cur == "USD":
            return (
                f"{self.config.base_url}CotacaoDolarPeriodo(dataInicial=@dataInicial,dataFinalCotacao=@dataFinalCotacao)"
                f"?@dataInicial='{d}'&@dataFinalCotacao='{d}'&$top=100&$format=json"
                "&$select=cotacaoCompra,cotacaoVenda,dataHoraCotacao"
            )
        return (
            f"{self.config.base_url}CotacaoMoedaAberturaOuIntermediario(codigoMoeda=@codigoMoeda,dataCotacao=@dataCotacao)"
            f"?@codigoMoeda='{cur}'&@dataCotacao='{d}'&$format=json"
            "&$select=cotacaoCompra,cotacaoVenda,dataHoraCotacao,tipoBoletim"
        )

    # -----------------------------
    # Conversión (BRL como pivote)
    # -----------------------------
    def convert(
        self,
        from_currency: str,
        to_currency: str,
        amount_cents: int,
        ctx: Optional[ConversionContext] = None,
    ) -> int:
        src = normalize_currency(from_currency)
        dst = normalize_currency(to_currency)
        if src == dst:
            return amount_cents

        if src == PIVOT:
            to_brl = self.sell_rate(dst, ctx)
            self._ensure_divisor(dst, to_brl)
            return divide_by_rate(amount_cents, to_brl)

        if dst == PIVOT:
            return apply_rate(amount_cents, self.sell_rate(src, ctx))

        from_brl = self.sell_rate(src, ctx)
        to_brl = self.sell_rate(dst, ctx)
        self._ensure_divisor(dst, to_brl)
        result = apply_rate(amount_cents, from_brl / to_brl)
        logger.debug(
            f"📈 Cruce BCB {src}->{dst}: {from_brl}/{to_brl} centavos={amount_cents} resultado={result}"
        )
        return result

    @staticmethod
    def _ensure_divisor(currency: str, rate: float) -> None:
        if rate == 0:
            raise ConversionError(
                ErrorKind.UNSUCCESSFUL, f"bcb returned a zero sell rate for {currency}"
            )

    # -----------------------------
    # Tasa de venta (BRL por unidad)
    # -----------------------------
    def sell_rate(self, currency: str, ctx: Optional[ConversionContext] = None) -> float:
        currency = normalize_currency(currency)
        key = self.cache_key(currency)

        cached = self.read_cache(key)
        if cached:
            try:
                quotes = parse_ptax(cached)
            except ConversionError as e:
                logger.warning(f"⚠️ Cache BCB ilegible para {currency}, se ignora: {e}")
            else:
                if quotes:
                    logger.info(f"✅ Usando cotización BCB en cache para {currency}")
                    return quotes[0].cotacaoVenda

        for try_date in self._candidate_dates():
            url = self.build_url(currency, try_date)
            logger.info(f"🔄 Consultando PTAX: {url}")
            day = self._fetch_day(url, ctx)
            if day.outcome is DayOutcome.FOUND:
                self.write_cache(key, day.body)
                return day.rate
            logger.info(f"Sin cotización BCB para {currency} el {try_date.isoformat()}")

        raise ConversionError(
            ErrorKind.RATE_WINDOW_EXHAUSTED,
            f"no bcb rate found for {currency} in last {self.max_back_days} days",
            info=currency,
        )

    def _candidate_dates(self) -> Iterator[date]:
        today = self.clock()
        for back in range(self.max_back_days + 1):
            yield today - timedelta(days=back)

    def _fetch_day(self, url: str, ctx: Optional[ConversionContext]) -> DayResult:
        attempt = 0
        while True:
            result = self._attempt(url, attempt, ctx)
            if result.outcome is AttemptOutcome.FATAL:
                raise result.error
            if result.outcome is AttemptOutcome.SUCCESS:
                quotes = parse_ptax(result.body)
                if not quotes:
                    return DayResult(DayOutcome.EMPTY)
                return DayResult(DayOutcome.FOUND, rate=quotes[0].cotacaoVenda, body=result.body)
            self._backoff(attempt, result.status_code, ctx)
            attempt += 1

    def _attempt(self, url: str, attempt: int, ctx: Optional[ConversionContext]) -> AttemptResult:
        # Errores de transporte se propagan sin pasar al día anterior.
        resp = self.get(url, ctx)
        if is_success(resp.status_code):
            return AttemptResult(AttemptOutcome.SUCCESS, body=resp.text)
        if resp.status_code >= 500 and attempt < self.max_retries:
            return AttemptResult(AttemptOutcome.RETRYABLE, status_code=resp.status_code)
        logger.error(f"❌ BCB respondió status={resp.status_code} body={resp.text}")
        return AttemptResult(
            AttemptOutcome.FATAL,
            status_code=resp.status_code,
            error=ConversionError.upstream_status("bcb", resp.status_code, resp.text),
        )

    def _backoff(self, attempt: int, status_code: Optional[int], ctx: Optional[ConversionContext]) -> None:
        delay = 2 ** attempt
        logger.warning(
            f"⚠️ BCB status={status_code}, reintento {attempt + 1}/{self.max_retries} en {delay}s"
        )
        if ctx is None:
            ctx = background()
        if self._sleep is not None:
            ctx.check()
            self._sleep(delay)
        else:
            ctx.sleep(delay)
