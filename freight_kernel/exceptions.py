"""
Typed Exception Hierarchy for the Freight Kernel.

===============================================================================
WHAT RAISES AND WHAT RETURNS
===============================================================================

Expected business failures are VALUES, not exceptions:

    - Payment validation (negative amount, overpayment without deduction)
      -> PaymentResult(is_valid=False, errors=...)
    - Rollback resolution (bank transaction links to a missing document)
      -> RollbackResult(success=False, error=...)
    - Integrity mismatches (stored ledger != rebuilt ledger)
      -> IntegrityReport(is_valid=False, issues=...)

Exceptions are reserved for contract violations: the caller handed the
core a malformed input shape (a non-numeric amount, an unparseable date,
a bill where a memo was required). Those crash loudly.

Example - WRONG way to handle errors:
    try:
        rebuild(documents)
    except Exception as e:
        if "amount" in str(e):  # FRAGILE - message might change
            skip_document()

Example - RIGHT way:
    try:
        rebuild(documents)
    except MalformedAmountError as e:
        log.error("bad amount", extra={"field": e.field, "value": e.value})

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    FreightLedgerError (base)
    |
    +-- InputShapeError
    |   +-- MalformedAmountError
    |   +-- MalformedDateError
    |   +-- MissingFieldError
    |   +-- DocumentKindMismatchError
    |   +-- UnknownEnumValueError
    |   +-- DocumentNotInBookError
    |
    +-- ConfigError
        +-- PolicyValidationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Shape           | MALFORMED_AMOUNT            | Amount is None, bool or non-numeric
                | MALFORMED_DATE              | Date is not a date/datetime/ISO string
                | MISSING_FIELD               | Required field absent or blank
                | DOCUMENT_KIND_MISMATCH      | Bill handed where memo expected (or v.v.)
                | UNKNOWN_ENUM_VALUE          | Status/category/type string not recognized
                | DOCUMENT_NOT_IN_BOOK        | Replacing a document the book never held
----------------|-----------------------------|-----------------------------------------
Config          | POLICY_VALIDATION_FAILED    | Reconciliation policy YAML is invalid
"""


class FreightLedgerError(Exception):
    """
    Base exception for all freight kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "FREIGHT_LEDGER_ERROR"


# Input shape exceptions


class InputShapeError(FreightLedgerError):
    """Base exception for inputs that violate the core's shape contract."""

    code: str = "INPUT_SHAPE_ERROR"


class MalformedAmountError(InputShapeError):
    """A monetary field could not be read as a Decimal."""

    code: str = "MALFORMED_AMOUNT"

    def __init__(self, field: str, value: object):
        self.field = field
        self.value = repr(value)
        super().__init__(f"Malformed amount for {field}: {value!r}")


class MalformedDateError(InputShapeError):
    """A date field could not be read as a calendar date."""

    code: str = "MALFORMED_DATE"

    def __init__(self, field: str, value: object):
        self.field = field
        self.value = repr(value)
        super().__init__(f"Malformed date for {field}: {value!r}")


class MissingFieldError(InputShapeError):
    """A required field is absent or blank."""

    code: str = "MISSING_FIELD"

    def __init__(self, entity: str, field: str):
        self.entity = entity
        self.field = field
        super().__init__(f"{entity} is missing required field: {field}")


class DocumentKindMismatchError(InputShapeError):
    """A document of the wrong kind was handed to a kind-specific operation."""

    code: str = "DOCUMENT_KIND_MISMATCH"

    def __init__(self, expected: str, actual: str, document_id: str = ""):
        self.expected = expected
        self.actual = actual
        self.document_id = document_id
        super().__init__(
            f"Expected a {expected} document, got {actual}"
            + (f" ({document_id})" if document_id else "")
        )


class UnknownEnumValueError(InputShapeError):
    """A status, category or type string is not one of the known values."""

    code: str = "UNKNOWN_ENUM_VALUE"

    def __init__(self, enum_name: str, value: object):
        self.enum_name = enum_name
        self.value = repr(value)
        super().__init__(f"Unknown {enum_name}: {value!r}")


class DocumentNotInBookError(InputShapeError):
    """A document was replaced or moved in a book that does not hold it."""

    code: str = "DOCUMENT_NOT_IN_BOOK"

    def __init__(self, document_id: str, kind: str):
        self.document_id = document_id
        self.kind = kind
        super().__init__(f"No {kind} with id {document_id} in this book")


# Configuration exceptions


class ConfigError(FreightLedgerError):
    """Base exception for reconciliation policy configuration errors."""

    code: str = "CONFIG_ERROR"


class PolicyValidationError(ConfigError):
    """The reconciliation policy failed validation."""

    code: str = "POLICY_VALIDATION_FAILED"

    def __init__(self, errors: list[str], source: str = ""):
        self.errors = list(errors)
        self.source = source
        where = f" in {source}" if source else ""
        super().__init__(
            f"Reconciliation policy invalid{where}: " + "; ".join(self.errors)
        )
