import logging
import time
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import requests

from http_models import RequestDescription, Response, WireRequest, WireResponse
from request_builder import build, upsert_header
from response_formatter import format_response, transport_failure

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class TransportResult:
    """Outcome of one execute() call: exactly one of response/error is set."""
    response: Optional[WireResponse] = None
    error: Optional[BaseException] = None
    elapsed_millis: int = 0

    @property
    def ok(self) -> bool:
        return self.response is not None

    def to_wire_response(self) -> WireResponse:
        if self.response is not None:
            return self.response
        return transport_failure(self.error or RuntimeError("Request failed"), self.elapsed_millis)


def _collect_headers(resp: requests.Response) -> Dict[str, Tuple[str, ...]]:
    # requests folds repeated headers into one comma-joined value; urllib3 keeps them apart
    raw_headers = getattr(resp.raw, "headers", None)
    if raw_headers is not None and hasattr(raw_headers, "getlist"):
        return {name: tuple(raw_headers.getlist(name)) for name in raw_headers.keys()}
    return {k: (v,) for k, v in resp.headers.items()}


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class HttpRequestService:
    def __init__(self, session: Optional[requests.Session] = None, timeout: float = DEFAULT_TIMEOUT,
                 allow_redirects: bool = True, verify: bool = True):
        self.session = session or requests.Session()
        self.timeout = timeout
        self.allow_redirects = allow_redirects
        self.verify = verify

    @classmethod
    def from_settings(cls, settings: dict, session: Optional[requests.Session] = None) -> "HttpRequestService":
        try:
            timeout = float(settings.get("timeout", DEFAULT_TIMEOUT))
        except (TypeError, ValueError):
            timeout = DEFAULT_TIMEOUT
        return cls(session=session, timeout=timeout,
                   allow_redirects=bool(settings.get("allow_redirects", True)),
                   verify=bool(settings.get("verify", True)))

    def execute(self, wire: WireRequest) -> TransportResult:
        log.info(f"Executing {wire.method.value} request to {wire.final_url}")
        headers = dict(wire.headers)
        if wire.body_bytes is not None and wire.effective_content_type:
            headers = upsert_header(headers, "Content-Type", wire.effective_content_type)
        start = time.monotonic()
        try:
            resp = self.session.request(wire.method.value, wire.final_url, headers=headers,
                                        data=wire.body_bytes, timeout=self.timeout,
                                        allow_redirects=self.allow_redirects, verify=self.verify)
            body = resp.content or b""
        except (requests.exceptions.RequestException, ValueError) as e:
            # ValueError covers header text http.client cannot encode and unparsable hosts
            elapsed = _elapsed_ms(start)
            log.warning(f"Request failed after {elapsed}ms: {e}")
            return TransportResult(error=e, elapsed_millis=elapsed)
        elapsed = _elapsed_ms(start)
        log.info(f"Request completed in {elapsed}ms with status {resp.status_code}")
        return TransportResult(
            response=WireResponse(status_code=resp.status_code, status_message=resp.reason or "",
                                  headers=_collect_headers(resp), body_bytes=body,
                                  elapsed_millis=elapsed),
            elapsed_millis=elapsed,
        )

    def send(self, desc: RequestDescription) -> Tuple[Response, str]:
        return format_response(self.execute(build(desc)).to_wire_response())

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
