"""DiffStatus, Severity, RegionKind, and ErrorCode enums."""

from enum import StrEnum


class DiffStatus(StrEnum):
    """Overall verdict of a comparison.

      passed  - neither the pixel nor the structural criterion failed.
      warning - exactly one of the two criteria failed.
      failed  - both criteria failed.
    """

    PASSED = "passed"
    WARNING = "warning"
    FAILED = "failed"


class Severity(StrEnum):
    """Severity of a difference region, derived from its pixel count."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RegionKind(StrEnum):
    """What happened inside a difference region."""

    MODIFICATION = "modification"
    ADDITION = "addition"
    REMOVAL = "removal"


class ErrorCode(StrEnum):
    """Stable error codes reported in failed comparison responses."""

    INVALID_IMAGE_DATA = "INVALID_IMAGE_DATA"
    DIMENSION_MISMATCH = "DIMENSION_MISMATCH"
    LENGTH_MISMATCH = "LENGTH_MISMATCH"
    WORKER_TIMEOUT = "WORKER_TIMEOUT"
    COMPARISON_FAILED = "COMPARISON_FAILED"
