"""
Service Errors
Error taxonomy shared by all services; mapped to HTTP responses in main
"""


class GalleryError(Exception):
    """Base class for errors that terminate a request with a known status"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequestError(GalleryError):
    status_code = 400


class UnauthorizedError(GalleryError):
    status_code = 401


class ForbiddenError(GalleryError):
    status_code = 403


class NotFoundError(GalleryError):
    status_code = 404


class ConflictError(GalleryError):
    status_code = 409


class ServiceUnavailableError(GalleryError):
    status_code = 503
