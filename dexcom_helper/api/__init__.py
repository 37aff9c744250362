"""Dexcom data API access."""

from .client import DexcomClient, RECORD_TYPES

__all__ = ['DexcomClient', 'RECORD_TYPES']
