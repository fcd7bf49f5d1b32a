import codecs
import json
import traceback
from typing import Mapping, Optional, Tuple

from http_models import Response, WireResponse, first_header

JSON_MARKER = "application/json"


# -------------------- Body --------------------
def _charset(content_type: Optional[str]) -> str:
    for part in (content_type or "").split(";")[1:]:
        name, _, value = part.strip().partition("=")
        if name.strip().lower() == "charset" and value:
            cs = value.strip().strip('"')
            try:
                return codecs.lookup(cs).name
            except LookupError:
                break
    return "utf-8"


def decode_body(body_bytes: bytes, content_type: Optional[str]) -> str:
    return (body_bytes or b"").decode(_charset(content_type), errors="replace")


def format_json(text: str) -> str:
    """Pretty-print a JSON document keeping key order; returns the input unchanged if it does not parse."""
    try:
        return json.dumps(json.loads(text), indent=2, ensure_ascii=False)
    except (ValueError, RecursionError):
        return text


def format_body(body: str, headers: Mapping[str, Tuple[str, ...]]) -> str:
    content_type = first_header(headers, "Content-Type") or ""
    if JSON_MARKER in content_type.lower():
        return format_json(body)
    return body


# -------------------- Rendering --------------------
def render(response: Response) -> str:
    lines = [
        f"HTTP {response.status_code} {response.status_message}",
        f"Duration: {response.elapsed_millis}ms",
        "",
        "=== Headers ===",
    ]
    for name, values in response.headers.items():
        lines += [f"{name}: {v}" for v in values]
    lines += ["", "=== Body ===", format_body(response.body, response.headers)]
    return "\n".join(lines) + "\n"


def format_response(wire: WireResponse) -> Tuple[Response, str]:
    content_type = first_header(wire.headers, "Content-Type")
    response = Response(
        status_code=wire.status_code,
        status_message=wire.status_message,
        headers=dict(wire.headers),
        body=decode_body(wire.body_bytes, content_type),
        elapsed_millis=wire.elapsed_millis,
    )
    return response, render(response)


def transport_failure(error: BaseException, elapsed_millis: int = 0) -> WireResponse:
    """Stand-in response for a request that never got an answer (DNS, refused connection, bad URL...)."""
    message = str(error) or "Request failed"
    detail = "".join(traceback.format_exception(type(error), error, error.__traceback__))
    return WireResponse(
        status_code=0,
        status_message=message,
        headers={},
        body_bytes=f"Error: {message}\n\n{detail}".encode("utf-8"),
        elapsed_millis=elapsed_millis,
    )


# -------------------- Status helpers --------------------
def status_category(code: int) -> str:
    if code <= 0:
        return "error"
    if code < 200:
        return "informational"
    if code < 300:
        return "success"
    if code < 400:
        return "redirect"
    if code < 500:
        return "client_error"
    return "server_error"


def status_summary(response: Response) -> str:
    size_kb = response.size_bytes / 1024
    return (f"Status: {response.status_code} {response.status_message} | "
            f"Time: {response.elapsed_millis}ms | Size: {size_kb:.2f} KB")
