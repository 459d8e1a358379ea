import math
from datetime import datetime

from services.errors import ValidationFailed


class Validator:
    """Collects field errors the way the API reports them: {field: [messages]}."""

    def __init__(self, data):
        self.data = data or {}
        self.errors = {}
        self.cleaned = {}

    def add_error(self, field, message):
        self.errors.setdefault(field, []).append(message)

    def _raw(self, field):
        value = self.data.get(field)
        if isinstance(value, str):
            value = value.strip()
        return None if value == '' else value

    def string(self, field, required=False, max_length=None):
        value = self._raw(field)
        if value is None:
            if required:
                self.add_error(field, f'The {field} field is required.')
            return None
        value = str(value)
        if max_length and len(value) > max_length:
            self.add_error(field, f'The {field} may not be greater than {max_length} characters.')
            return None
        self.cleaned[field] = value
        return value

    def choice(self, field, choices, required=False):
        value = self._raw(field)
        if value is None:
            if required:
                self.add_error(field, f'The {field} field is required.')
            return None
        if value not in choices:
            self.add_error(field, f"The selected {field} is invalid. Allowed: {', '.join(choices)}")
            return None
        self.cleaned[field] = value
        return value

    def number(self, field, required=False, minimum=None, maximum=None):
        value = self._raw(field)
        if value is None:
            if required:
                self.add_error(field, f'The {field} field is required.')
            return None
        try:
            value = float(value)
        except (TypeError, ValueError):
            self.add_error(field, f'The {field} must be a number.')
            return None
        if not math.isfinite(value):
            self.add_error(field, f'The {field} must be a finite number.')
            return None
        if (minimum is not None and value < minimum) or (maximum is not None and value > maximum):
            self.add_error(field, f'The {field} must be between {minimum} and {maximum}.')
            return None
        self.cleaned[field] = value
        return value

    def integer(self, field, required=False, minimum=None, maximum=None):
        value = self._raw(field)
        if value is None:
            if required:
                self.add_error(field, f'The {field} field is required.')
            return None
        if isinstance(value, bool):
            self.add_error(field, f'The {field} must be an integer.')
            return None
        try:
            value = int(value)
        except (TypeError, ValueError):
            self.add_error(field, f'The {field} must be an integer.')
            return None
        if (minimum is not None and value < minimum) or (maximum is not None and value > maximum):
            self.add_error(field, f'The {field} must be between {minimum} and {maximum}.')
            return None
        self.cleaned[field] = value
        return value

    def boolean(self, field, required=False):
        value = self._raw(field)
        if value is None:
            if required:
                self.add_error(field, f'The {field} field is required.')
            return None
        if isinstance(value, bool):
            result = value
        elif str(value).lower() in ('1', 'true', 'yes'):
            result = True
        elif str(value).lower() in ('0', 'false', 'no'):
            result = False
        else:
            self.add_error(field, f'The {field} field must be true or false.')
            return None
        self.cleaned[field] = result
        return result

    def date(self, field, fmt='%Y-%m-%d'):
        value = self._raw(field)
        if value is None:
            return None
        try:
            value = datetime.strptime(value, fmt)
        except (TypeError, ValueError):
            self.add_error(field, 'Invalid date format. Use YYYY-MM-DD')
            return None
        self.cleaned[field] = value
        return value

    def timestamp(self, field):
        value = self._raw(field)
        if value is None:
            return None
        try:
            value = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
        except ValueError:
            self.add_error(field, f'The {field} must be an ISO 8601 timestamp.')
            return None
        if value.tzinfo is not None:
            value = value.replace(tzinfo=None) - (value.utcoffset())
        self.cleaned[field] = value
        return value

    def validate(self):
        if self.errors:
            raise ValidationFailed(self.errors)
        return self.cleaned
