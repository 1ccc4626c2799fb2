"""
Domain exceptions raised by the service layer.

Blueprints translate these into the JSON envelope via the handlers
registered in create_app(); see ``http_status_for``.
"""


class FrontDeskError(Exception):
    """Base class for all service-layer failures."""
    status_code = 500

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__


class ValidationError(FrontDeskError):
    """Request failed validation."""
    status_code = 400

    def __init__(self, errors):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__('; '.join(self.errors))


class NotFoundError(FrontDeskError):
    """Record not found."""
    status_code = 404


class DataPortError(FrontDeskError):
    """Relational backend call failed."""
    status_code = 502


class AppointmentCreationError(FrontDeskError):
    """Failed to create consultation appointment. Please try again."""
    status_code = 502


class SheetCreationError(FrontDeskError):
    """Failed to save surgical recall sheet."""
    status_code = 502


class FormLockedError(FrontDeskError):
    """Signed forms cannot be modified."""
    status_code = 409


class StorageError(FrontDeskError):
    """Object storage call failed."""
    status_code = 502


class EnhancementError(FrontDeskError):
    """Failed to enhance instructions. Please try again."""
    status_code = 502


def http_status_for(error):
    return getattr(error, 'status_code', 500)
