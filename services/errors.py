class ServiceError(Exception):
    status_code = 400

    def __init__(self, message):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {'message': self.message}


class ValidationFailed(ServiceError):
    """Malformed or out-of-range input, keyed by field name."""

    status_code = 422

    def __init__(self, errors, message='Validation failed'):
        super().__init__(message)
        self.errors = errors

    def to_dict(self):
        return {'message': self.message, 'errors': self.errors}


class Forbidden(ServiceError):
    status_code = 403


class NotFound(ServiceError):
    status_code = 404
