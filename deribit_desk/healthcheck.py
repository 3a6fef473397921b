"""
Desk Healthcheck Module

Exercises the critical pipeline: config -> Deribit public API -> auth.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from deribit_desk.calls import CallResult
from deribit_desk.config import Settings, settings
from deribit_desk.deribit.base_client import DeribitErrorCode
from deribit_desk.deribit_client import DeskClient


class CheckStatus(str, Enum):
    OK = "ok"
    WARN = "warn"
    FAIL = "fail"
    SKIPPED = "skipped"


@dataclass
class HealthCheckResult:
    name: str
    status: CheckStatus
    detail: str
    error_code: Optional[str] = None


def _validate_basic_config(cfg: Settings) -> list[str]:
    issues = []
    if not cfg.deribit_base_url.startswith(("http://", "https://")):
        issues.append(f"deribit_base_url is not an HTTP URL: {cfg.deribit_base_url!r}")
    if cfg.request_timeout_seconds <= 0:
        issues.append("request_timeout_seconds must be positive")
    if cfg.call_timeout_seconds <= 0:
        issues.append("call_timeout_seconds must be positive")
    return issues


def check_config(cfg: Settings) -> HealthCheckResult:
    """Validate basic configuration sanity."""
    issues = _validate_basic_config(cfg)
    if issues:
        return HealthCheckResult(
            name="config",
            status=CheckStatus.FAIL,
            detail="; ".join(issues),
        )

    warnings = []
    if not cfg.is_testnet:
        warnings.append(f"not pointed at testnet ({cfg.deribit_base_url})")
    if not cfg.has_credentials:
        warnings.append("no client credentials configured")
    if warnings:
        return HealthCheckResult(
            name="config",
            status=CheckStatus.WARN,
            detail="; ".join(warnings),
        )

    return HealthCheckResult(
        name="config",
        status=CheckStatus.OK,
        detail=f"env={cfg.deribit_env}, url={cfg.deribit_base_url}",
    )


def _format_call_failure(result: CallResult) -> tuple[CheckStatus, str]:
    """
    Format a failed CallResult into (status, detail) tuple.
    Uses error classification for clear, actionable messages.
    """
    error_code = result.error_code or DeribitErrorCode.UNKNOWN

    if error_code == DeribitErrorCode.NETWORK:
        return CheckStatus.FAIL, f"Network error: {result.message}"
    elif error_code == DeribitErrorCode.TIMEOUT:
        return CheckStatus.FAIL, f"Request timeout: {result.message}"
    elif error_code == DeribitErrorCode.AUTH:
        return CheckStatus.FAIL, f"Authentication error: {result.message}"
    elif error_code == DeribitErrorCode.FORBIDDEN:
        return CheckStatus.WARN, f"Access forbidden (403): {result.message}"
    elif error_code == DeribitErrorCode.RATE_LIMIT:
        return CheckStatus.WARN, f"Rate limited (429): {result.message}"
    elif error_code == DeribitErrorCode.SERVER_ERROR:
        return CheckStatus.FAIL, f"Server error ({result.http_status or '5xx'}): {result.message}"
    else:
        return CheckStatus.FAIL, f"API error [{error_code.value}]: {result.message}"


def check_deribit_public(client: DeskClient) -> HealthCheckResult:
    """Check public Deribit API connectivity."""
    result = client.test_connectivity()
    if result.ok:
        return HealthCheckResult(
            name="deribit_public",
            status=CheckStatus.OK,
            detail=f"public API OK, version={result.data or 'unknown'}",
        )

    status, detail = _format_call_failure(result)
    return HealthCheckResult(
        name="deribit_public",
        status=status,
        detail=detail,
        error_code=result.error_code.value if result.error_code else None,
    )


def check_deribit_private(client: DeskClient, cfg: Settings) -> HealthCheckResult:
    """Check that the configured credentials authenticate."""
    if not cfg.has_credentials:
        return HealthCheckResult(
            name="deribit_private",
            status=CheckStatus.SKIPPED,
            detail="no private API credentials configured",
        )

    result = client.authenticate(cfg.credentials())
    if result.ok:
        return HealthCheckResult(
            name="deribit_private",
            status=CheckStatus.OK,
            detail=f"private API OK, scope={result.data.scope or 'n/a'}",
        )

    status, detail = _format_call_failure(result)
    return HealthCheckResult(
        name="deribit_private",
        status=status,
        detail=f"private API: {detail}",
        error_code=result.error_code.value if result.error_code else None,
    )


def run_healthcheck(
    cfg: Settings | None = None,
    client: DeskClient | None = None,
) -> dict[str, Any]:
    """
    Run all health checks and return aggregated results.

    Returns:
        dict with 'overall_status', 'results' list, and 'summary' string
    """
    cfg = cfg or settings

    results: list[HealthCheckResult] = [check_config(cfg)]

    owns_client = client is None
    if client is None:
        client = DeskClient(base_url=cfg.deribit_base_url, credentials=cfg.credentials())
    try:
        results.append(check_deribit_public(client))
        results.append(check_deribit_private(client, cfg))
    finally:
        if owns_client:
            client.close()

    has_fail = any(r.status == CheckStatus.FAIL for r in results)
    has_warn = any(r.status == CheckStatus.WARN for r in results)

    if has_fail:
        overall_status = "FAIL"
    elif has_warn:
        overall_status = "WARN"
    else:
        overall_status = "OK"

    summary_parts = []
    for r in results:
        if r.status == CheckStatus.FAIL:
            summary_parts.append(f"{r.name} FAIL")
        elif r.status == CheckStatus.WARN:
            summary_parts.append(f"{r.name} WARN")

    if not summary_parts:
        summary = "All checks passed"
    else:
        summary = ", ".join(summary_parts)

    return {
        "overall_status": overall_status,
        "summary": summary,
        "results": [
            {
                "name": r.name,
                "status": r.status.value,
                "detail": r.detail,
                "error_code": r.error_code,
            }
            for r in results
        ],
    }
