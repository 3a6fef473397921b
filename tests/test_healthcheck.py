"""
Tests for the healthcheck module.

These tests use a scripted transport to avoid real network calls.
"""
from __future__ import annotations

from deribit_desk.config import Settings
from deribit_desk.healthcheck import (
    CheckStatus,
    check_config,
    check_deribit_private,
    check_deribit_public,
    run_healthcheck,
)


def _settings(**overrides) -> Settings:
    values = dict(
        deribit_base_url="https://test.deribit.com",
        deribit_client_id="client-x",
        deribit_client_secret="secret-y",
    )
    values.update(overrides)
    return Settings(**values)


class TestCheckConfig:

    def test_ok(self):
        assert check_config(_settings()).status == CheckStatus.OK

    def test_missing_credentials_warns(self):
        result = check_config(_settings(deribit_client_id="", deribit_client_secret=""))

        assert result.status == CheckStatus.WARN
        assert "credentials" in result.detail

    def test_mainnet_url_warns(self):
        result = check_config(_settings(deribit_base_url="https://www.deribit.com"))
        assert result.status == CheckStatus.WARN

    def test_bad_url_fails(self):
        result = check_config(_settings(deribit_base_url="test.deribit.com"))
        assert result.status == CheckStatus.FAIL


class TestCheckDeribit:

    def test_public_ok(self, make_client):
        result = check_deribit_public(make_client([{"result": {"version": "1.2.26"}}]))

        assert result.status == CheckStatus.OK
        assert "1.2.26" in result.detail

    def test_public_network_failure(self, make_client):
        result = check_deribit_public(make_client([""]))

        assert result.status == CheckStatus.FAIL
        assert result.error_code == "network_error"

    def test_private_skipped_without_credentials(self, make_client):
        result = check_deribit_private(make_client(), _settings(deribit_client_id=""))
        assert result.status == CheckStatus.SKIPPED

    def test_private_ok(self, make_client):
        client = make_client([{"result": {"access_token": "t", "scope": "trade:read"}}], authenticated=False)
        result = check_deribit_private(client, _settings())

        assert result.status == CheckStatus.OK
        assert "trade:read" in result.detail

    def test_private_rejected(self, make_client):
        client = make_client([{"error": {"code": 13004, "message": "invalid_credentials"}}], authenticated=False)
        result = check_deribit_private(client, _settings())

        assert result.status == CheckStatus.FAIL
        assert result.error_code == "auth_error"


class TestRunHealthcheck:

    def test_all_ok(self, make_client):
        client = make_client([
            {"result": {"version": "1.2.26"}},
            {"result": {"access_token": "t"}},
        ])
        report = run_healthcheck(_settings(), client=client)

        assert report["overall_status"] == "OK"
        assert report["summary"] == "All checks passed"
        assert [r["name"] for r in report["results"]] == ["config", "deribit_public", "deribit_private"]

    def test_fail_dominates(self, make_client):
        report = run_healthcheck(_settings(deribit_client_id=""), client=make_client([""]))

        assert report["overall_status"] == "FAIL"
        assert "deribit_public FAIL" in report["summary"]
        assert "config WARN" in report["summary"]
