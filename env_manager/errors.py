class EnvVarError(Exception):
    """Base class for errors raised while handling environment variables."""
    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ValidationError(EnvVarError):
    """Key or value missing from a create/update request."""
    status_code = 400


class NotFoundError(EnvVarError):
    """No record with the requested id."""
    status_code = 404


class InfrastructureError(EnvVarError):
    """The database is unavailable or a statement failed."""
    status_code = 500


class AuthenticationError(Exception):
    """Login credentials were rejected."""
