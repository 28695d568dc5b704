"""Exception taxonomy for the differential gas harness."""

from __future__ import annotations


class BenchError(Exception):
    """Base class for every error the harness raises on purpose."""


class DecodeUnderflow(ValueError):
    """Generator bytes ran out before a full element was decoded.

    Decoders absorb this: exhaustion truncates a sequence, it never fails it.
    """


class CodecError(BenchError, ValueError):
    """Wire bytes do not describe a well-formed value or action sequence."""


class ConfigError(BenchError, ValueError):
    """A benchmark configuration is inconsistent or out of range."""


class DeploymentError(BenchError):
    """An isolated instance could not be stood up. Fatal before any trial."""


class SubmissionError(BenchError):
    """A submission to a deployed instance failed. Fatal for the whole run."""

    def __init__(self, message: str, *, entry_point: str | None = None) -> None:
        super().__init__(message)
        self.entry_point = entry_point


class GasExceeded(SubmissionError):
    """A submission burnt more gas than its ceiling allowed."""

    def __init__(self, used: int, limit: int, *, entry_point: str | None = None) -> None:
        super().__init__(
            f"Exceeded the prepaid gas: used {used}, limit {limit}",
            entry_point=entry_point,
        )
        self.used = used
        self.limit = limit


class GasMismatch(BenchError, AssertionError):
    """Accumulated totals disagree with a pinned pair or an accepted delta."""

    def __init__(
        self,
        message: str,
        *,
        candidate: int,
        baseline: int,
        expected: tuple[int, int] | None = None,
    ) -> None:
        detail = f"{message} (candidate={candidate}, baseline={baseline}"
        if expected is not None:
            detail += f", expected={expected[0]}/{expected[1]}"
        detail += ")"
        super().__init__(detail)
        self.candidate = candidate
        self.baseline = baseline
        self.expected = expected
