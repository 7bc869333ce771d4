"""Error taxonomy for CLM workflow submissions."""
from typing import Dict, List, Optional

from models import ErrorKind


class ClmIntegrationError(Exception):
    kind: ErrorKind = ErrorKind.TRANSPORT

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(ClmIntegrationError):
    """Token, account id or workflow name missing. Raised before any network call."""
    kind = ErrorKind.CONFIGURATION


class FormValidationError(ClmIntegrationError):
    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        self.errors = errors or []


class TransportError(ClmIntegrationError):
    kind = ErrorKind.TRANSPORT


class UpstreamError(ClmIntegrationError):
    """Relay or CLM answered with a non-2xx status."""
    kind = ErrorKind.UPSTREAM

    def __init__(self, message: str, status_code: int, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class SampleParseError(ClmIntegrationError):
    """Sample XML handed to the inferencer is not well-formed."""
    kind = ErrorKind.VALIDATION
