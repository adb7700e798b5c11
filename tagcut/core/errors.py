"""Exit codes for the tagcut CLI.

Automation wrapping tagcut relies on these values to tell apart
"nothing happened", "something happened and was cleaned up" and
"something happened and was NOT cleaned up". They must remain stable.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Process exit codes, one per release outcome.

    - 0: release published
    - 31: bad flags or configuration, nothing attempted
    - 32: a Dry precondition failed, no side effects exist
    - 33: Run failed and every side effect was reverted
    - 34: Run failed and at least one side effect could not be reverted
    """

    OK = 0
    USER_ERROR = 31
    VALIDATION_FAILED = 32
    RUN_FAILED = 33
    REVERT_FAILED = 34

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @property
    def needs_manual_cleanup(self) -> bool:
        """True only when the repository or host may be left half-mutated."""
        return self == ErrorCode.REVERT_FAILED
