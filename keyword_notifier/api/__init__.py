"""Listing API for collected items."""

from keyword_notifier.api.app import create_app

__all__ = ["create_app"]
