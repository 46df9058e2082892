# --- Custom Service Layer Exception Classes ---

class ServiceError(Exception):
    """General exception class for the service layer."""
    pass


class NotFoundError(ServiceError):
    """The requested student, batch or record does not exist."""
    pass


class ConflictError(ServiceError):
    """The operation would create a duplicate (student id, batch name)."""
    pass


class ServiceUnavailableError(ServiceError):
    """The record store could not be reached or refused the write."""
    pass
