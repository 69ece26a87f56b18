from __future__ import annotations


class SeederError(Exception):
    """Base class for errors raised by the market seeder."""


class ConfigurationError(SeederError):
    """Required configuration is missing or invalid."""


class PriceDataError(SeederError):
    """The price service returned a payload that cannot be turned into a quote."""


class CompletionResponseError(SeederError):
    """The completion service response does not carry a message content string."""


class SubmissionError(SeederError):
    """A createMarket transaction could not be submitted or was reverted."""

    def __init__(self, message: str, *, tx_hash: str | None = None) -> None:
        super().__init__(message)
        self.tx_hash = tx_hash


__all__ = [
    "CompletionResponseError",
    "ConfigurationError",
    "PriceDataError",
    "SeederError",
    "SubmissionError",
]
