"""Command line interface for MembershipVC."""

from .main import app

__all__ = ["app"]
