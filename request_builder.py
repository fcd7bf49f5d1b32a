import base64
from typing import Dict, Iterable, Optional, Tuple
from urllib.parse import quote, urlencode

from http_models import (DEFAULT_CONTENT_TYPE, Auth, BasicAuth, BearerAuth, HttpMethod,
                         RequestDescription, WireRequest)

BODYLESS_METHODS = (HttpMethod.GET, HttpMethod.HEAD, HttpMethod.OPTIONS)
ENTITY_METHODS = (HttpMethod.POST, HttpMethod.PUT, HttpMethod.PATCH)


# -------------------- Query string --------------------
def build_query_string(params: Iterable[Tuple[str, str]]) -> str:
    pairs = []
    for k, v in params:
        k = (k or "").strip()
        if not k:
            continue
        pairs.append((k, (v or "").strip()))
    return urlencode(pairs, quote_via=quote, encoding="utf-8", errors="replace")


def append_query(url: str, params: Iterable[Tuple[str, str]]) -> str:
    qs = build_query_string(params)
    if not qs:
        return url
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}{qs}"


# -------------------- Auth / headers --------------------
def auth_header(auth: Auth) -> Optional[str]:
    """Authorization header value for the given auth mode, or None when credentials are blank."""
    if isinstance(auth, BasicAuth):
        u, pw = (auth.username or "").strip(), (auth.password or "").strip()
        if not u and not pw:
            return None
        enc = base64.b64encode(f"{u}:{pw}".encode("utf-8", errors="replace")).decode("ascii")
        return f"Basic {enc}"
    if isinstance(auth, BearerAuth):
        token = (auth.token or "").strip()
        return f"Bearer {token}" if token else None
    return None


def upsert_header(headers: Dict[str, str], key: str, value: str) -> Dict[str, str]:
    out = {k: v for k, v in headers.items() if k.lower() != key.lower()}
    out[key] = value
    return out


def merge_headers(headers: Dict[str, str], auth: Auth) -> Dict[str, str]:
    merged = {}
    for k, v in (headers or {}).items():
        k, v = (k or "").strip(), (v or "").strip()
        if k and v:
            merged[k] = v
    value = auth_header(auth)
    if value is not None:
        merged = upsert_header(merged, "Authorization", value)
    return merged


# -------------------- Body / content type --------------------
def resolve_body(method: HttpMethod, body: Optional[str]) -> Optional[str]:
    if method in BODYLESS_METHODS:
        return None
    if method in ENTITY_METHODS:
        return body if body is not None else ""
    # DELETE carries an entity only when one was given
    return body


def resolve_content_type(headers: Dict[str, str], content_type: Optional[str],
                         body: Optional[str]) -> Optional[str]:
    for k, v in headers.items():
        if k.lower() == "content-type":
            return v
    if content_type:
        return content_type
    return DEFAULT_CONTENT_TYPE if body is not None else None


def build(desc: RequestDescription) -> WireRequest:
    url = append_query(desc.url, desc.query_params)
    headers = merge_headers(desc.headers, desc.auth)
    body = resolve_body(desc.method, desc.body)
    return WireRequest(
        final_url=url,
        method=desc.method,
        headers=headers,
        body_bytes=body.encode("utf-8", errors="replace") if body is not None else None,
        effective_content_type=resolve_content_type(headers, desc.content_type, body),
    )


# -------------------- cURL export --------------------
def shell_quote(s: str) -> str:
    if not s:
        return "''"
    if any(ch in s for ch in " \t\n\"'\\$`&|;<>()*?!#~{}[]^"):
        return "'" + s.replace("'", "'\"'\"'") + "'"
    return s


def to_curl(wire: WireRequest) -> str:
    parts = ["curl", "-X", wire.method.value]
    headers = dict(wire.headers)
    if wire.effective_content_type and wire.body_bytes is not None:
        headers = upsert_header(headers, "Content-Type", wire.effective_content_type)
    for k, v in headers.items():
        parts += ["-H", f"{k}: {v}"]
    if wire.body_bytes is not None:
        parts += ["-d", wire.body_bytes.decode("utf-8", errors="replace")]
    parts.append(wire.final_url)
    return " ".join(shell_quote(p) for p in parts)
