import json
import unittest
from unittest.mock import MagicMock

import requests

from bff.errors import ApiError
from bff.proxy import (
    build_external_url,
    read_json_object,
    read_json_rows,
    to_response,
    upstream_error,
)
from bff.upstream import (
    HttpUpstreamClient,
    InMemoryUpstreamClient,
    UpstreamResponse,
    UpstreamUnavailableError,
)


class BuildExternalUrlTests(unittest.TestCase):
    def test_joins_path_and_query(self):
        self.assertEqual(
            build_external_url("http://upstream.test:5253", "/api/sales", "page=2"),
            "http://upstream.test:5253/api/sales?page=2",
        )

    def test_rejects_non_http_bases(self):
        self.assertIsNone(build_external_url("upstream.test", "/api/sales"))
        self.assertIsNone(build_external_url("ftp://upstream.test", "/api/sales"))
        self.assertIsNone(build_external_url("http://", "/api/sales"))


class ToResponseTests(unittest.TestCase):
    def test_json_is_reserialized_with_status(self):
        response = to_response(UpstreamResponse.from_json({"id": 1}, 201))
        self.assertEqual(response.status_code, 201)
        self.assertEqual(json.loads(response.body), {"id": 1})

    def test_invalid_json_becomes_empty_object(self):
        upstream = UpstreamResponse(200, b"not json", {"Content-Type": "application/json"})
        self.assertEqual(json.loads(to_response(upstream).body), {})

    def test_no_content(self):
        response = to_response(UpstreamResponse(204, b"ignored"))
        self.assertEqual(response.status_code, 204)
        self.assertEqual(response.body, b"")

    def test_raw_passthrough_keeps_headers_and_cookies(self):
        upstream = UpstreamResponse(
            200,
            b"%PDF",
            {"Content-Type": "application/pdf", "Content-Disposition": "attachment"},
            set_cookies=["a=1; Path=/", "b=2; Path=/"],
        )
        response = to_response(upstream)
        self.assertEqual(response.body, b"%PDF")
        self.assertEqual(response.headers["content-type"], "application/pdf")
        self.assertEqual(response.headers["content-disposition"], "attachment")
        self.assertEqual(response.headers.getlist("set-cookie"), ["a=1; Path=/", "b=2; Path=/"])


class ReadJsonTests(unittest.TestCase):
    def test_rows_from_envelope(self):
        upstream = UpstreamResponse.from_json({"results": [{"id": 1}]})
        self.assertEqual(read_json_rows(upstream, "bad"), [{"id": 1}])

    def test_rows_malformed(self):
        with self.assertRaises(ApiError) as ctx:
            read_json_rows(UpstreamResponse.from_json("text"), "Invalid list")
        self.assertEqual((ctx.exception.status_code, ctx.exception.message), (502, "Invalid list"))

    def test_object_unwraps_data(self):
        upstream = UpstreamResponse.from_json({"data": {"id": 2}, "success": True})
        self.assertEqual(read_json_object(upstream, "bad"), {"id": 2})

    def test_object_malformed(self):
        with self.assertRaises(ApiError):
            read_json_object(UpstreamResponse.from_json([1, 2]), "bad")

    def test_upstream_error_message(self):
        error = upstream_error(UpstreamResponse.from_json({"title": "Conflict"}, 409), "fallback")
        self.assertEqual((error.status_code, error.message), (409, "Conflict"))
        error = upstream_error(UpstreamResponse(500, b""), "fallback")
        self.assertEqual(error.message, "fallback")


class HttpUpstreamClientTests(unittest.TestCase):
    def test_wraps_network_errors(self):
        session = MagicMock()
        session.request.side_effect = requests.ConnectionError("Connection refused")
        client = HttpUpstreamClient(session=session)
        with self.assertRaises(UpstreamUnavailableError) as ctx:
            client.request("GET", "http://upstream.test/api/sales")
        self.assertIn("Connection refused", str(ctx.exception))

    def test_translates_response(self):
        raw_response = MagicMock()
        raw_response.status_code = 201
        raw_response.content = b'{"ok": true}'
        raw_response.headers = {"Content-Type": "application/json"}
        raw_response.raw.headers.getlist.return_value = ["session=1"]
        session = MagicMock()
        session.request.return_value = raw_response

        client = HttpUpstreamClient(timeout=3, session=session)
        upstream = client.request("POST", "http://upstream.test/api/sales", json_body={"a": 1})

        self.assertEqual(upstream.status_code, 201)
        self.assertEqual(upstream.json(), {"ok": True})
        self.assertEqual(upstream.headers["content-type"], "application/json")
        self.assertEqual(upstream.set_cookies, ["session=1"])
        kwargs = session.request.call_args.kwargs
        self.assertEqual(kwargs["json"], {"a": 1})
        self.assertEqual(kwargs["timeout"], 3)
        self.assertFalse(kwargs["allow_redirects"])


class InMemoryUpstreamClientTests(unittest.TestCase):
    def test_scripted_responses_in_order_then_repeat(self):
        client = InMemoryUpstreamClient()
        client.add_json("GET", "/api/x", {"n": 1})
        client.add_json("GET", "/api/x", {"n": 2})
        seen = [client.request("GET", "http://h/api/x").json()["n"] for _ in range(3)]
        self.assertEqual(seen, [1, 2, 2])
        self.assertEqual(len(client.calls_to("get", "/api/x")), 3)

    def test_unscripted_route_is_not_found(self):
        response = InMemoryUpstreamClient().request("DELETE", "http://h/api/y")
        self.assertEqual(response.status_code, 404)
        self.assertFalse(response.ok)


if __name__ == "__main__":
    unittest.main()
