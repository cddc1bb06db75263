#!/usr/bin/env python

"""Error taxonomy for sug.

Every fatal condition derives from SugError and is reported once, by the
command-line entry point, as a single human-readable line.
"""


class SugError(Exception):
    """Base class for all sug errors"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ConfigurationError(SugError):
    """No usable provider, missing API key, or a bad configuration value"""


class ProviderRequestError(SugError):
    """The provider request failed (network, timeout, HTTP status, or payload)"""

    def __init__(self, provider: str, detail: str):
        super().__init__(f"{provider} request failed: {detail}")
        self.provider = provider
        self.detail = detail


class ProtocolError(SugError):
    """The model response does not follow the +/= response contract"""


class EmptyResponseError(ProtocolError):
    def __init__(self, message: str = "empty response from AI"):
        super().__init__(message)


class InvalidFormatError(ProtocolError):
    def __init__(self, response: str):
        super().__init__("invalid response format: must start with + or =")
        self.response = response


class PartialDataWarning(SugError):
    """Context or history collection came back incomplete; never fatal"""
