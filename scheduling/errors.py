class SchedulingError(Exception):
    """Base for errors surfaced to the caller with an HTTP-style status."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SchedulingError):
    status_code = 400


class NotFound(SchedulingError):
    status_code = 404


class InvalidStateTransition(SchedulingError):
    status_code = 409

    def __init__(self, message: str, current_status=None, requested_status=None):
        super().__init__(message)
        self.current_status = current_status
        self.requested_status = requested_status
