# backend/services/errors.py
"""
Domain errors raised by the CV services.

Each error carries the HTTP status the API layer answers with, so route
handlers never have to translate them one by one.
"""


class CvServiceError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidJobDescriptionError(CvServiceError):
    status_code = 400


class ProfileIncompleteError(CvServiceError):
    status_code = 400

    def __init__(self, message: str = "Complete your profile before generating a CV"):
        super().__init__(message)


class CvNotFoundError(CvServiceError):
    status_code = 404

    def __init__(self, message: str = "CV not found"):
        super().__init__(message)


class GenerationServiceError(CvServiceError):
    """The generation service kept failing after all attempts."""
    status_code = 502


class MalformedResponseError(CvServiceError):
    """The generation service answered with text that is not the expected JSON."""
    status_code = 502

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class StorageError(CvServiceError):
    status_code = 500


class InvalidSignedUrlError(CvServiceError):
    status_code = 401


class ObjectNotFoundError(StorageError):
    status_code = 404
