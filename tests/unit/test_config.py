"""Tests for PageLinkConfig validation, env loading and repr masking."""

from __future__ import annotations

import pytest

from pagelink.config import DEFAULT_PAGE_TITLE, DEFAULT_PROVIDER_TYPE, PageLinkConfig


class TestDefaults:
    def test_defaults(self):
        config = PageLinkConfig()
        assert config.provider_type == DEFAULT_PROVIDER_TYPE == "notion"
        assert config.default_page_title == DEFAULT_PAGE_TITLE == "New page"
        assert config.backend_url == "http://localhost:8001"
        assert config.app_url == "http://localhost:3000"
        assert config.retry_max_attempts == 3
        assert config.metrics is None
        assert config.debug_dump_payload is False


class TestValidation:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"retry_max_attempts": 0},
            {"retry_base_delay": -1.0},
            {"retry_max_delay": -0.1},
            {"rate_limit_rps": 0},
            {"timeout_seconds": 0},
            {"provider_type": ""},
        ],
    )
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(ValueError):
            PageLinkConfig(**overrides)

    def test_non_http_scheme_rejected(self):
        with pytest.raises(ValueError, match="backend_url"):
            PageLinkConfig(backend_url="ftp://example.com")

    def test_plain_http_rejected_for_remote_host(self):
        with pytest.raises(ValueError, match="insecure HTTP"):
            PageLinkConfig(app_url="http://app.example.com")

    @pytest.mark.parametrize("host", ["localhost", "127.0.0.1"])
    def test_plain_http_allowed_for_local_host(self, host):
        config = PageLinkConfig(backend_url=f"http://{host}:9000")
        assert config.backend_url == f"http://{host}:9000"

    def test_https_allowed(self):
        config = PageLinkConfig(
            backend_url="https://api.example.com",
            app_url="https://app.example.com",
        )
        assert config.app_url == "https://app.example.com"


class TestFromEnv:
    def test_reads_prefixed_variables(self):
        config = PageLinkConfig.from_env({
            "PAGELINK_BACKEND_URL": "https://api.example.com",
            "PAGELINK_APP_URL": "https://app.example.com",
            "PAGELINK_OAUTH_CLIENT_ID": "client-xyz",
            "PAGELINK_TIMEOUT_SECONDS": "12.5",
        })
        assert config.backend_url == "https://api.example.com"
        assert config.app_url == "https://app.example.com"
        assert config.oauth_client_id == "client-xyz"
        assert config.timeout_seconds == 12.5

    def test_empty_values_ignored(self):
        config = PageLinkConfig.from_env({"PAGELINK_PROVIDER_TYPE": ""})
        assert config.provider_type == "notion"

    def test_overrides_win(self):
        config = PageLinkConfig.from_env(
            {"PAGELINK_PROVIDER_TYPE": "notion"}, provider_type="confluence",
        )
        assert config.provider_type == "confluence"

    def test_invalid_env_value_rejected(self):
        with pytest.raises(ValueError):
            PageLinkConfig.from_env({"PAGELINK_APP_URL": "http://app.example.com"})


class TestRepr:
    def test_client_id_masked(self):
        text = repr(PageLinkConfig(oauth_client_id="client-abc-1234"))
        assert "client-abc-1234" not in text
        assert "oauth_client_id='...1234'" in text

    def test_short_client_id_fully_masked(self):
        assert "oauth_client_id='****'" in repr(PageLinkConfig(oauth_client_id="ab"))
