import os
import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from clientdesk.main import app


class HttpHardeningTests(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(app)

    def tearDown(self):
        self.client.close()

    def test_health_payload(self):
        for path in ("/health", "/api/health"):
            response = self.client.get(path)
            self.assertEqual(response.status_code, 200)
            body = response.json()
            self.assertEqual(body["status"], "OK")
            self.assertIn("timestamp", body)
            self.assertGreaterEqual(body["uptime"], 0)
            self.assertIn("environment", body)
            self.assertIn("version", body)

    def test_health_has_security_headers_and_request_id(self):
        response = self.client.get("/health")
        self.assertEqual(response.headers.get("x-content-type-options"), "nosniff")
        self.assertEqual(response.headers.get("x-frame-options"), "DENY")
        self.assertEqual(response.headers.get("referrer-policy"), "no-referrer")
        self.assertEqual(response.headers.get("cache-control"), "no-store")
        self.assertIn("default-src 'self'", response.headers.get("content-security-policy", ""))
        self.assertRegex(str(response.headers.get("x-request-id")), r"^[A-Za-z0-9._-]{1,128}$")

    def test_valid_request_id_is_preserved(self):
        response = self.client.get("/health", headers={"X-Request-ID": "release-check-2026_10_18"})
        self.assertEqual(response.headers.get("x-request-id"), "release-check-2026_10_18")

    def test_invalid_request_id_is_replaced(self):
        response = self.client.get("/health", headers={"X-Request-ID": "bad id with spaces"})
        self.assertNotEqual(response.headers.get("x-request-id"), "bad id with spaces")

    def test_error_response_keeps_security_headers(self):
        response = self.client.get("/api/auth/profile")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.headers.get("x-frame-options"), "DENY")
        self.assertTrue(bool(response.headers.get("x-request-id")))

    def test_unknown_route_shape(self):
        response = self.client.get("/api/nope")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"error": "Route not found", "path": "/api/nope", "method": "GET"})

    def test_oversized_body_is_rejected(self):
        with patch("clientdesk.core.http_hardening.settings.MAX_BODY_BYTES", 16):
            response = self.client.post("/api/auth/login", json={"email": "a" * 40 + "@x.com", "password": "x"})
        self.assertEqual(response.status_code, 413)
        self.assertEqual(response.json()["error"], "Payload too large")

    def test_cors_preflight(self):
        response = self.client.options(
            "/api/client",
            headers={
                "Origin": "http://localhost:4200",
                "Access-Control-Request-Method": "GET",
                "Access-Control-Request-Headers": "Authorization",
            },
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers.get("access-control-allow-origin"), "http://localhost:4200")
