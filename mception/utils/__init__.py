"""Shared utilities."""

from mception.utils.rwlock import AsyncRWLock

__all__ = ["AsyncRWLock"]
