"""
Tests for the credential check and CORS header builder.
"""

from loyalty_api.auth import check_api_key
from loyalty_api.cors import cors_headers


class TestCheckApiKey:
    """Tests for check_api_key."""

    def test_match(self):
        assert check_api_key("secret", "secret") is True

    def test_mismatch(self):
        assert check_api_key("secret", "other") is False

    def test_prefix_is_not_a_match(self):
        assert check_api_key("sec", "secret") is False

    def test_no_key_supplied(self):
        assert check_api_key(None, "secret") is False
        assert check_api_key("", "secret") is False

    def test_expected_unset_denies(self):
        assert check_api_key("secret", None) is False
        assert check_api_key("", "") is False

    def test_non_ascii(self):
        assert check_api_key("clé-secrète", "clé-secrète") is True


class TestCorsHeaders:
    """Tests for cors_headers."""

    def test_default_origin(self):
        assert cors_headers() == {
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
            "Access-Control-Allow-Headers": "Content-Type, X-API-Key, Authorization",
            "Access-Control-Max-Age": "86400",
        }

    def test_echoes_origin(self):
        assert cors_headers("https://school.example")["Access-Control-Allow-Origin"] == "https://school.example"

    def test_empty_origin_falls_back(self):
        assert cors_headers("")["Access-Control-Allow-Origin"] == "*"
