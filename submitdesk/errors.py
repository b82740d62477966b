# submitdesk/errors.py


class PortalError(Exception):
    """Base for every failure reported to a caller as a single message."""

    http_status = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PortalError):
    pass


class DuplicateSubmission(PortalError):
    def __init__(self, message: str = "Assignment already exists"):
        super().__init__(message)


class NotFound(PortalError):
    pass


class AlreadyExists(PortalError):
    pass


class InvalidCredentials(PortalError):
    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class Unauthorized(PortalError):
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class AuthError(PortalError):
    # token missing, malformed or expired
    http_status = 401


class AllSubmitted(PortalError):
    """Not a fault: every enrolled student has submitted for the code."""

    def __init__(self, message: str = "All registered students have submitted the assignment"):
        super().__init__(message)


class SubmissionInconsistent(PortalError):
    def __init__(self, message: str = "Something went wrong"):
        super().__init__(message)
