"""Exception hierarchy for dump and load sessions.

Every error raised by the package derives from ``ReplicantError``. Most also
derive from the builtin exception a caller would naturally catch for the same
kind of failure (``TypeError``, ``LookupError``, ``ValueError``).
"""


class ReplicantError(Exception):
    """Base exception for all replicant failures."""


class MissingCapabilityError(ReplicantError, TypeError):
    """Raised when an object handed to the Dumper cannot dump itself."""


class UnknownTypeError(ReplicantError, LookupError):
    """Raised when a fed type name has no registered load capability."""


class DuplicateTypeError(ReplicantError, ValueError):
    """Raised when a type name is registered twice."""


class UnresolvedReferenceError(ReplicantError, LookupError):
    """Raised when a reference has no keymap entry and the policy is ``fail``."""

    def __init__(self, target_type: str, target_id: object, attribute: str | None = None):
        self.target_type = target_type
        self.target_id = target_id
        self.attribute = attribute
        where = f" (attribute {attribute!r})" if attribute else ""
        super().__init__(f"{target_type} {target_id!r} missing from keymap{where}")


class LoadError(ReplicantError):
    """Raised when a load capability returns something other than (local_id, instance)."""


class AttributeTypeError(ReplicantError, TypeError):
    """Raised when an attribute value cannot be represented on the wire."""


class StreamDecodeError(ReplicantError, ValueError):
    """Raised for malformed wire data."""
