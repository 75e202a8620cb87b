"""Pydantic domain models for the exchange rate service."""

from .quote import RateQuote, UpstreamEnvelope

__all__ = [
    "RateQuote",
    "UpstreamEnvelope",
]
