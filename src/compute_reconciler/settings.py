"""Reconciler configuration settings.

ReconcilerSettings is the single configuration object the controllers and
the compute client are built from. It is a plain dataclass (not
env-coupled) so tests can inject config without touching os.environ.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .polling.states import (
    DEFAULT_MAX_INTERVAL_SECONDS,
    DEFAULT_MIN_INTERVAL_SECONDS,
    DEFAULT_NOT_FOUND_CHECKS,
)


@dataclass(frozen=True, slots=True)
class ReconcilerSettings:
    """Configuration for the compute API client and the waiter.

    All fields have defaults suitable for tests; a real deployment must
    supply region_name. Credentials come from the standard AWS chain.
    """

    # ── Compute API ────────────────────────────────────────────────
    region_name: str = ""
    """AWS region the EC2 client talks to (e.g. us-west-2)."""

    endpoint_url: str = ""
    """Overrides the EC2 endpoint (e.g. a local emulator). Empty means default."""

    request_timeout_seconds: float = 30.0
    """Connect and read timeout for each EC2 call."""

    max_retries: int = 3
    """botocore retries for throttling, 5xx and timeouts."""

    # ── Waiter ─────────────────────────────────────────────────────
    min_poll_interval_seconds: float | None = None
    """Overrides every wait's minimum poll interval when set."""

    max_poll_interval_seconds: float = DEFAULT_MAX_INTERVAL_SECONDS
    """Ceiling for the waiter's backoff."""

    not_found_checks: int = DEFAULT_NOT_FOUND_CHECKS
    """Consecutive absent probes tolerated before giving up."""

    # ── Logging ────────────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = "json"
    """One of: json, console."""

    def validate(self) -> list[str]:
        """Return a list of configuration errors. Empty means valid."""
        errors: list[str] = []
        if self.request_timeout_seconds <= 0:
            errors.append("request_timeout_seconds must be > 0")
        if self.max_retries < 0:
            errors.append("max_retries must be >= 0")
        if self.min_poll_interval_seconds is not None and self.min_poll_interval_seconds <= 0:
            errors.append("min_poll_interval_seconds must be > 0")
        floor = self.min_poll_interval_seconds or DEFAULT_MIN_INTERVAL_SECONDS
        if self.max_poll_interval_seconds < floor:
            errors.append("max_poll_interval_seconds must be >= the minimum poll interval")
        if self.not_found_checks < 0:
            errors.append("not_found_checks must be >= 0")
        if self.log_format not in ("json", "console"):
            errors.append(f"log_format must be json or console, got {self.log_format!r}")
        return errors

    def validate_api(self) -> list[str]:
        """Errors that only matter when talking to a real compute API."""
        errors: list[str] = []
        if not self.region_name:
            errors.append("region_name is required")
        return errors

    @classmethod
    def from_env(cls, env: dict[str, str] | None = None) -> ReconcilerSettings:
        """Build settings from environment variables.

        This is a convenience factory for production use. Tests should
        construct ReconcilerSettings directly.
        """
        if env is None:
            env = dict(os.environ)

        min_interval_raw = env.get("RECONCILER_MIN_POLL_INTERVAL", "").strip()

        return cls(
            region_name=env.get("AWS_REGION") or env.get("AWS_DEFAULT_REGION", ""),
            endpoint_url=env.get("COMPUTE_ENDPOINT_URL", ""),
            request_timeout_seconds=float(env.get("COMPUTE_REQUEST_TIMEOUT", "30")),
            max_retries=int(env.get("COMPUTE_MAX_RETRIES", "3")),
            min_poll_interval_seconds=float(min_interval_raw) if min_interval_raw else None,
            max_poll_interval_seconds=float(
                env.get("RECONCILER_MAX_POLL_INTERVAL", str(DEFAULT_MAX_INTERVAL_SECONDS))
            ),
            not_found_checks=int(
                env.get("RECONCILER_NOT_FOUND_CHECKS", str(DEFAULT_NOT_FOUND_CHECKS))
            ),
            log_level=env.get("LOG_LEVEL", "INFO"),
            log_format=env.get("LOG_FORMAT", "json"),
        )

    def build_client(self):
        """Construct an Ec2ComputeClient from these settings."""
        import boto3
        from botocore.config import Config

        from .providers.ec2_client import Ec2ComputeClient

        problems = self.validate_api()
        if problems:
            raise ValueError("; ".join(problems))
        config = Config(
            connect_timeout=self.request_timeout_seconds,
            read_timeout=self.request_timeout_seconds,
            retries={"total_max_attempts": self.max_retries + 1, "mode": "standard"},
        )
        session = boto3.Session(region_name=self.region_name)
        ec2 = session.client("ec2", endpoint_url=self.endpoint_url or None, config=config)
        return Ec2ComputeClient(ec2)

    def wait_options(self) -> dict:
        """Keyword arguments forwarded to the waiter."""
        options: dict = {
            "max_interval": self.max_poll_interval_seconds,
            "not_found_checks": self.not_found_checks,
        }
        if self.min_poll_interval_seconds is not None:
            options["min_interval"] = self.min_poll_interval_seconds
        return options
