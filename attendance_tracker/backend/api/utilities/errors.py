from fastapi import HTTPException, status

from ...services.errors import ConflictError, NotFoundError, ServiceError, ServiceUnavailableError


def to_http_exception(e: ServiceError) -> HTTPException:
    """Maps a service-layer error onto the matching HTTP status."""
    if isinstance(e, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(e, ConflictError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(e, ServiceUnavailableError):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=str(e))
