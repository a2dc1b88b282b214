import enum
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar


T = TypeVar("T")


class FailureKind(str, enum.Enum):
    CONFIG_MISSING = "config_missing"
    TRANSPORT = "transport"
    NON_SUCCESS_STATUS = "non_success_status"
    MALFORMED_PAYLOAD = "malformed_payload"
    PARSE_FAILURE = "parse_failure"


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """
    Either a value or a failure kind with a human-readable detail.

    Clients return this instead of raising so the pipelines can make a single
    success/failure decision while the cause stays available for logging.
    """

    value: Optional[T] = None
    failure: Optional[FailureKind] = None
    detail: str = ""

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, kind: FailureKind, detail: str = "") -> "Outcome[T]":
        return cls(failure=kind, detail=detail)

    @property
    def ok(self) -> bool:
        return self.failure is None

    def __bool__(self) -> bool:
        return self.ok

    def describe(self) -> str:
        if self.ok:
            return "ok"
        if self.detail:
            return f"{self.failure.value}: {self.detail}"
        return self.failure.value
