"""Exception hierarchy for the clinical rules engine.

Only caller mistakes are raised. Clinical findings (contraindications,
allergy matches) are returned as data, and lookup misses return ``None``.
"""


class DentalCDSError(Exception):
    """Base class for all engine errors."""

    code = "DENTAL_CDS_ERROR"

    def __init__(self, message, code=None, detail=None):
        self.message = message
        if code is not None:
            self.code = code
        self.detail = detail
        super().__init__(message)


class InvalidPatientError(DentalCDSError):
    """Patient parameters are missing or outside the physiological range."""

    code = "INVALID_PATIENT"

    def __init__(self, field, message):
        super().__init__(message, detail={"field": field})
        self.field = field


class NotFoundError(DentalCDSError):
    """A named record required by an operation does not exist."""

    code = "NOT_FOUND"

    def __init__(self, kind, key):
        super().__init__(f'{kind.capitalize()} "{key}" not found in database',
                         detail={"kind": kind, "key": key})
        self.kind = kind
        self.key = key


class DataLoadError(DentalCDSError):
    """A reference collection could not be loaded (retried by the sync layer)."""

    code = "DATA_LOAD_FAILED"


class ComparisonError(DentalCDSError):
    """Material comparison requested with an unsupported number of records."""

    code = "COMPARISON_INVALID"
