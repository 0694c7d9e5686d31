from __future__ import annotations


class AnalysisError(Exception):
    """Base error carrying the HTTP status of the failure.

    Client errors (400) surface ``message`` as the envelope's ``error``.
    Server errors (500) surface it as ``details`` under the endpoint's own
    failure summary.
    """

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500


class MissingInput(AnalysisError):
    status_code = 400


class InvalidUrl(AnalysisError):
    status_code = 400

    def __init__(self, message: str = "Invalid URL format"):
        super().__init__(message)


class UnsupportedType(AnalysisError):
    status_code = 400

    def __init__(self, message: str = "Unsupported file type"):
        super().__init__(message)


class UploadTooLarge(AnalysisError):
    status_code = 400

    def __init__(self, message: str = "File too large"):
        super().__init__(message)


class ExternalServiceError(AnalysisError):
    status_code = 500


class FetchError(AnalysisError):
    status_code = 500


class UnexpectedError(AnalysisError):
    status_code = 500
