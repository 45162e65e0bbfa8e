"""
Exception types shared across the API.
"""


class LoyaltyError(Exception):
    """Base error for the loyalty API."""


class ConfigurationError(LoyaltyError):
    """Required configuration is missing."""


class InvalidKeyError(LoyaltyError, ValueError):
    """Private key material could not be decoded."""


class SuiRPCError(LoyaltyError):
    """Error from Sui JSON-RPC call."""

    def __init__(self, code: int, message: str):
        self.code = code
        self.message = message
        super().__init__(f"RPC Error {code}: {message}")
