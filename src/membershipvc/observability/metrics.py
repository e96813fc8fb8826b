# Copyright (c) MembershipVC Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Prometheus Metrics Integration.

Provides metrics collection and export for the credential ledger.
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest


class MetricsCollector:
    """
    Prometheus metrics collector for MembershipVC.

    Exposes metrics:
    - membershipvc_credentials_issued_total{issuer="..."}
    - membershipvc_credentials_revoked_total
    - membershipvc_verifications_total{result="valid|invalid"}
    - membershipvc_operations_denied_total{operation="..."}
    - membershipvc_authorized_issuers

    Each collector owns a ``CollectorRegistry`` so several ledgers (or
    tests) in one process never clash on metric names.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None, enabled: bool = True):
        self.registry = registry or CollectorRegistry()
        self._enabled = enabled

        self.credentials_issued_total = Counter(
            "membershipvc_credentials_issued_total",
            "Total number of credentials issued",
            ["issuer"],
            registry=self.registry,
        )

        self.credentials_revoked_total = Counter(
            "membershipvc_credentials_revoked_total",
            "Total number of credential revocations",
            registry=self.registry,
        )

        self.verifications_total = Counter(
            "membershipvc_verifications_total",
            "Membership verification requests by result",
            ["result"],
            registry=self.registry,
        )

        self.operations_denied_total = Counter(
            "membershipvc_operations_denied_total",
            "Mutating operations rejected for lack of authorization",
            ["operation"],
            registry=self.registry,
        )

        self.authorized_issuers = Gauge(
            "membershipvc_authorized_issuers",
            "Number of authorized issuers, admin included",
            registry=self.registry,
        )

    @property
    def enabled(self) -> bool:
        """Check if metrics are enabled."""
        return self._enabled

    def record_credential_issued(self, issuer: str):
        """Record credential issuance."""
        if not self._enabled:
            return
        self.credentials_issued_total.labels(issuer=issuer).inc()

    def record_credential_revoked(self):
        """Record a credential moving from active to revoked."""
        if not self._enabled:
            return
        self.credentials_revoked_total.inc()

    def record_verification(self, valid: bool):
        """Record a verification result."""
        if not self._enabled:
            return
        result = "valid" if valid else "invalid"
        self.verifications_total.labels(result=result).inc()

    def record_denied(self, operation: str):
        """Record an operation rejected by an access guard."""
        if not self._enabled:
            return
        self.operations_denied_total.labels(operation=operation).inc()

    def set_authorized_issuers(self, count: int):
        """Set the authorized issuer count."""
        if not self._enabled:
            return
        self.authorized_issuers.set(count)

    def export(self) -> bytes:
        """Render the registry in the Prometheus text exposition format."""
        return generate_latest(self.registry)
