"""Exception types raised by arrowsheet."""

from __future__ import annotations


class ProgrammingContractViolation(RuntimeError):
    """Raised for conditions that correct callers can never trigger.

    Examples are an unknown constraint kind, merging an empty cluster or
    asking for the multiplicative inverse of zero. These are bugs in the
    caller and are not meant to be caught.
    """


__all__ = ["ProgrammingContractViolation"]
