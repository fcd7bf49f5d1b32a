import json

import pytest

from http_models import Response, WireResponse
from response_formatter import (decode_body, format_body, format_json, format_response, status_category,
                                status_summary, transport_failure)

JSON_HEADERS = {"Content-Type": ("application/json",)}


class TestFormatJson:
    def test_pretty_prints_and_keeps_key_order(self):
        out = format_json('{"b":1,"a":2}')
        assert out == '{\n  "b": 1,\n  "a": 2\n}'
        assert list(json.loads(out)) == ["b", "a"]

    def test_nested_values_keep_types(self):
        src = '{"list":[1,2.5,true,null,"x"],"obj":{"k":"v"}}'
        assert json.loads(format_json(src)) == json.loads(src)

    def test_non_ascii_is_not_escaped(self):
        assert format_json('{"name":"Zoë"}') == '{\n  "name": "Zoë"\n}'

    @pytest.mark.parametrize("text", ["not-json", "", "{", "{'a': 1}"])
    def test_falls_back_to_raw_text(self, text):
        assert format_json(text) == text


class TestFormatBody:
    def test_json_content_type(self):
        assert format_body('{"b":1,"a":2}', JSON_HEADERS) == '{\n  "b": 1,\n  "a": 2\n}'

    def test_json_with_charset_and_odd_case(self):
        headers = {"content-type": ("Application/JSON; charset=utf-8",)}
        assert format_body("[1,2]", headers) == "[\n  1,\n  2\n]"

    def test_invalid_json_falls_back(self):
        assert format_body("not-json", JSON_HEADERS) == "not-json"

    def test_only_first_content_type_value_counts(self):
        headers = {"Content-Type": ("text/plain", "application/json")}
        assert format_body('{"a":1}', headers) == '{"a":1}'

    @pytest.mark.parametrize("headers", [{}, {"Content-Type": ("text/html",)}])
    def test_other_bodies_are_verbatim(self, headers):
        assert format_body('{"a":1}  <b>&amp;</b>', headers) == '{"a":1}  <b>&amp;</b>'


class TestDecodeBody:
    def test_defaults_to_utf8(self):
        assert decode_body("Zoë".encode("utf-8"), None) == "Zoë"

    def test_uses_declared_charset(self):
        assert decode_body("Zoë".encode("latin-1"), "text/plain; charset=ISO-8859-1") == "Zoë"

    def test_unknown_charset_falls_back_to_utf8(self):
        assert decode_body(b"ok", "text/plain; charset=bogus") == "ok"

    def test_invalid_bytes_are_replaced(self):
        assert decode_body(b"a\xffb", "text/plain") == "a�b"


class TestFormatResponse:
    def test_rendered_text(self):
        wire = WireResponse(
            status_code=200,
            status_message="OK",
            headers={"Content-Type": ["application/json"], "Set-Cookie": ["a=1", "b=2"]},
            body_bytes=b'{"b":1,"a":2}',
            elapsed_millis=42,
        )
        response, text = format_response(wire)
        assert response == Response(
            status_code=200,
            status_message="OK",
            headers={"Content-Type": ("application/json",), "Set-Cookie": ("a=1", "b=2")},
            body='{"b":1,"a":2}',
            elapsed_millis=42,
        )
        assert response.is_successful
        assert text == (
            "HTTP 200 OK\n"
            "Duration: 42ms\n"
            "\n"
            "=== Headers ===\n"
            "Content-Type: application/json\n"
            "Set-Cookie: a=1\n"
            "Set-Cookie: b=2\n"
            "\n"
            "=== Body ===\n"
            '{\n  "b": 1,\n  "a": 2\n}\n'
        )

    def test_no_headers_and_empty_body(self):
        _, text = format_response(WireResponse(204, "No Content"))
        assert text == "HTTP 204 No Content\nDuration: 0ms\n\n=== Headers ===\n\n=== Body ===\n\n"

    def test_bad_json_body_kept_literal(self):
        _, text = format_response(WireResponse(500, "Server Error", JSON_HEADERS, b"not-json", 3))
        assert text.endswith("=== Body ===\nnot-json\n")

    def test_is_idempotent(self):
        wire = WireResponse(404, "Not Found", {"X": ["1", "2"]}, b"missing", 7)
        assert format_response(wire) == format_response(wire)

    def test_status_zero_is_never_successful(self):
        response, _ = format_response(WireResponse(0, "boom"))
        assert response.is_successful is False


class TestTransportFailure:
    def _raise(self):
        try:
            raise ConnectionError("Connection refused")
        except ConnectionError as e:
            return e

    def test_shape(self):
        wire = transport_failure(self._raise(), elapsed_millis=12)
        assert wire.status_code == 0
        assert wire.status_message == "Connection refused"
        assert wire.headers == {}
        assert wire.elapsed_millis == 12
        body = wire.body_bytes.decode("utf-8")
        assert body.startswith("Error: Connection refused\n\n")
        assert "Traceback" in body
        assert "ConnectionError: Connection refused" in body

    def test_empty_message(self):
        wire = transport_failure(RuntimeError())
        assert wire.status_message == "Request failed"
        assert wire.body_bytes.decode("utf-8").startswith("Error: Request failed\n\n")

    def test_flows_through_the_same_renderer(self):
        response, text = format_response(transport_failure(self._raise(), 5))
        assert not response.is_successful
        assert text.startswith("HTTP 0 Connection refused\nDuration: 5ms\n\n=== Headers ===\n\n=== Body ===\nError: ")


class TestStatusHelpers:
    @pytest.mark.parametrize("code,category", [
        (0, "error"), (101, "informational"), (200, "success"), (301, "redirect"),
        (404, "client_error"), (503, "server_error"),
    ])
    def test_status_category(self, code, category):
        assert status_category(code) == category

    def test_status_summary(self):
        r = Response(201, "Created", {}, "x" * 2048, 15)
        assert status_summary(r) == "Status: 201 Created | Time: 15ms | Size: 2.00 KB"
