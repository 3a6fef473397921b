"""
Tests for environment-driven settings.
"""
from __future__ import annotations

from deribit_desk.config import Settings


class TestSettings:

    def test_defaults_point_at_testnet(self, monkeypatch):
        monkeypatch.delenv("DERIBIT_BASE_URL", raising=False)
        monkeypatch.delenv("DERIBIT_ENV", raising=False)
        cfg = Settings(_env_file=None)

        assert cfg.deribit_base_url == "https://test.deribit.com"
        assert cfg.is_testnet
        assert cfg.request_timeout_seconds > 0

    def test_credentials_from_environment(self, monkeypatch):
        monkeypatch.setenv("DERIBIT_CLIENT_ID", "env-id")
        monkeypatch.setenv("DERIBIT_CLIENT_SECRET", "env-secret")
        cfg = Settings(_env_file=None)

        creds = cfg.credentials()
        assert creds.client_id == "env-id"
        assert creds.client_secret == "env-secret"
        assert cfg.has_credentials
        assert "env-secret" not in repr(creds)

    def test_mainnet_is_not_testnet(self):
        cfg = Settings(_env_file=None, deribit_env="mainnet", deribit_base_url="https://www.deribit.com")
        assert not cfg.is_testnet
