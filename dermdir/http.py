"""HTTP client with request budgeting and fixed-rate pacing."""
from __future__ import annotations

import json
import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import requests

logger = logging.getLogger(__name__)


class BudgetExceededError(RuntimeError):
    pass


class PlacesApiError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass
class RequestMetrics:
    network_requests: int = 0
    failed_requests: int = 0

    @property
    def requests_count(self) -> int:
        return self.network_requests

    def inc_network(self) -> None:
        self.network_requests += 1

    def inc_failed(self) -> None:
        self.failed_requests += 1


class RequestBudget:
    def __init__(
        self,
        max_requests: int,
        on_consume: Optional[Callable[[int], None]] = None,
        metrics: Optional[RequestMetrics] = None,
    ) -> None:
        self.max_requests = max_requests
        self.on_consume = on_consume
        self.metrics = metrics
        self._count = 0

    @property
    def requests_count(self) -> int:
        if self.metrics is not None:
            return int(self.metrics.network_requests)
        return self._count

    @property
    def remaining(self) -> int:
        return max(0, self.max_requests - self.requests_count)

    def consume(self) -> None:
        if self.requests_count >= self.max_requests:
            raise BudgetExceededError(
                f"Places request budget exceeded: {self.requests_count} >= {self.max_requests}"
            )
        if self.metrics is not None:
            self.metrics.inc_network()
        else:
            self._count += 1
        if self.on_consume:
            self.on_consume(self.requests_count)


class RequestPacer:
    """Suspends for a fixed interval after every outgoing call."""

    def __init__(self, qps: float, sleep: Callable[[float], None] = time.sleep) -> None:
        if qps <= 0:
            raise ValueError("qps must be positive")
        self.qps = qps
        self.delay_seconds = math.ceil(1000 / qps) / 1000.0
        self._sleep = sleep

    def wait(self) -> None:
        self._sleep(self.delay_seconds)


class HttpClient:
    def __init__(self, api_key: str, timeout: int = 20) -> None:
        self.api_key = api_key
        self.timeout = timeout
        self.session = requests.Session()

    def _headers(self, field_mask: str) -> Dict[str, str]:
        return {
            "X-Goog-Api-Key": self.api_key,
            "X-Goog-FieldMask": field_mask,
            "Content-Type": "application/json",
        }

    def post_json(self, url: str, body: Dict[str, Any], field_mask: str) -> Dict[str, Any]:
        resp = self.session.post(
            url, data=json.dumps(body), headers=self._headers(field_mask), timeout=self.timeout
        )
        return self._decode(url, resp)

    def get_json(
        self, url: str, field_mask: str, params: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        resp = self.session.get(
            url, params=params, headers=self._headers(field_mask), timeout=self.timeout
        )
        return self._decode(url, resp)

    def _decode(self, url: str, resp: requests.Response) -> Dict[str, Any]:
        status = resp.status_code
        if status != 200:
            logger.error("HTTP %s from %s", status, url)
            raise PlacesApiError(f"HTTP {status} from {url}", status_code=status)
        try:
            payload = resp.json()
        except ValueError:
            logger.error("Non-JSON response from %s", url)
            raise PlacesApiError(f"Non-JSON response from {url}", status_code=status) from None
        if not isinstance(payload, dict):
            raise PlacesApiError(
                f"Unexpected payload type {type(payload).__name__} from {url}", status_code=status
            )
        return payload
