class SigV4AError(Exception):
    """Base class for all errors raised while signing a request.

    :ivar msg: The descriptive message associated with the error.
    """

    fmt = 'An unspecified error occurred'

    def __init__(self, **kwargs):
        msg = self.fmt.format(**kwargs)
        super().__init__(msg)
        self.kwargs = kwargs


class MissingRequiredFieldError(SigV4AError, ValueError):
    """The request lacks a field the canonical request cannot be built without.

    :ivar field: The missing pseudo-header, e.g. ``:method``.
    """

    fmt = 'Message is missing {field} header'


class KeyDerivationError(SigV4AError):
    fmt = (
        'Unable to derive a P-256 signing key for access key {access_key_id} '
        'after {attempts} attempts'
    )
