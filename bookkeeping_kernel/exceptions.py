"""
Typed Exception Hierarchy for the Bookkeeping Kernel.

===============================================================================
RAISED ERRORS VS REPORTED CONDITIONS
===============================================================================

The calculation engines never raise on bad business data.  Missing catalog
references, unusable quantities, over-claimed bonuses and overlapping
overrides degrade to a best-effort number plus a reported ``Condition``
(see ``bookkeeping_kernel.domain.conditions``).

The exceptions below are raised only at the boundaries that feed the
engines: the document codec, the persistence repository, the settings
loader, period parsing, override writes and record capture.  Every exception carries a
machine-readable ``code`` class attribute and stores its context as
attributes, so callers catch by type and read structured data instead of
parsing messages:

    try:
        snapshot = parse_document(raw)
    except DocumentShapeError as e:
        show_error(code=e.code, path=e.path)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    BookkeepingError (base)
    |
    +-- DocumentError
    |   +-- DocumentShapeError
    |   +-- DocumentNotFoundError
    |
    +-- PeriodError
    |   +-- InvalidMonthError
    |   +-- InvalidDateError
    |
    +-- OverrideError
    |   +-- OverrideValueError
    |   +-- UnknownOverrideFieldError
    |
    +-- RecordError
    |   +-- UnknownProductError
    |   +-- RecordValueError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category   | Code                     | When Raised
-----------|--------------------------|------------------------------------------
Document   | DOCUMENT_SHAPE_INVALID   | Top-level document or record malformed
           | DOCUMENT_NOT_FOUND       | No stored document under the given name
-----------|--------------------------|------------------------------------------
Period     | INVALID_MONTH            | Year-month is not "YYYY-MM"
           | INVALID_DATE             | Date is not "YYYY-MM-DD"
-----------|--------------------------|------------------------------------------
Override   | OVERRIDE_VALUE_INVALID   | Override value is not numeric
           | OVERRIDE_FIELD_UNKNOWN   | Override field name not recognised
-----------|--------------------------|------------------------------------------
Record     | PRODUCT_NOT_FOUND        | Sale names a product not in the catalog
           | RECORD_VALUE_INVALID     | Sale, transaction or balance input unusable
-----------|--------------------------|------------------------------------------
Config     | CONFIG_INVALID           | Settings file has bad keys or values
"""


class BookkeepingError(Exception):
    """
    Base exception for all bookkeeping errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "BOOKKEEPING_ERROR"


# Document-related exceptions


class DocumentError(BookkeepingError):
    """Base exception for business-document errors."""

    code: str = "DOCUMENT_ERROR"


class DocumentShapeError(DocumentError):
    """The business document does not have the expected shape."""

    code: str = "DOCUMENT_SHAPE_INVALID"

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Malformed business document at {path}: {reason}")


class DocumentNotFoundError(DocumentError):
    """No stored business document under the given name."""

    code: str = "DOCUMENT_NOT_FOUND"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Business document not found: {name}")


# Period-related exceptions


class PeriodError(BookkeepingError):
    """Base exception for date and month errors."""

    code: str = "PERIOD_ERROR"


class InvalidMonthError(PeriodError):
    """Year-month string is not of the form YYYY-MM."""

    code: str = "INVALID_MONTH"

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Invalid year-month (expected YYYY-MM): {value!r}")


class InvalidDateError(PeriodError):
    """Date string is not of the form YYYY-MM-DD."""

    code: str = "INVALID_DATE"

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Invalid date (expected YYYY-MM-DD): {value!r}")


# Override-related exceptions


class OverrideError(BookkeepingError):
    """Base exception for manual override errors."""

    code: str = "OVERRIDE_ERROR"


class OverrideValueError(OverrideError):
    """An override value is neither numeric nor absent."""

    code: str = "OVERRIDE_VALUE_INVALID"

    def __init__(self, date: str, field: str, value: object):
        self.date = date
        self.field = field
        self.value = value
        super().__init__(
            f"Override value for {field} on {date} is not numeric: {value!r}"
        )


class UnknownOverrideFieldError(OverrideError):
    """An override names a field the monthly report does not expose."""

    code: str = "OVERRIDE_FIELD_UNKNOWN"

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Unknown override field: {field}")


# Record capture exceptions


class RecordError(BookkeepingError):
    """Base exception for product sale, transaction and balance capture."""

    code: str = "RECORD_ERROR"


class UnknownProductError(RecordError):
    code: str = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


class RecordValueError(RecordError):
    """A captured record has a missing or unusable value."""

    code: str = "RECORD_VALUE_INVALID"

    def __init__(self, field: str, value: object, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field} {value!r}: {reason}")


# Configuration exceptions


class ConfigurationError(BookkeepingError):
    """Settings could not be loaded or are invalid."""

    code: str = "CONFIG_INVALID"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid setting {key}: {reason}")
