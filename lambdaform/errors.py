"""
Error taxonomy for packaging, identity resolution and provider calls.
"""

from typing import Optional


class LambdaformError(Exception):
    """Base class for all lambdaform errors."""


class ManifestError(LambdaformError):
    """Manifest file is missing, unreadable or invalid."""


class StateError(LambdaformError):
    """A recorded state file is unreadable or malformed."""


class PackagingError(LambdaformError):
    """I/O failure while archiving or fingerprinting a code directory."""


class IdentityResolutionError(LambdaformError):
    """The execution role could not be constructed or looked up."""


class ProviderCallError(LambdaformError):
    """A Lambda API call failed."""

    def __init__(self, operation: str, message: str, code: Optional[str] = None):
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
        self.code = code
        self.message = message


class ResourceNotFoundError(ProviderCallError):
    """The function addressed by a provider call does not exist."""


class RemovalError(LambdaformError):
    """Deleting the function failed for a reason other than not-found."""
