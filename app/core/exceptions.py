from fastapi import HTTPException


class AppError(Exception):
    """Base class for business-rule errors raised by the services"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(AppError):
    status_code = 400


class PermissionDeniedError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class IntegrationError(AppError):
    """A third-party service is unconfigured or failed"""
    status_code = 500


def http_error(error: AppError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.message)
