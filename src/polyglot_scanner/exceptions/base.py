"""Root of the scanner's exception tree."""

from typing import Any, Optional


class ScannerError(Exception):
    """Any failure the scanner reports to its caller.

    ``details`` holds short key/value context (paths, counts, the scan
    stage) rendered after the message; ``hint`` is an optional remedy the
    CLI prints on its own line.
    """

    hint: Optional[str] = None

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        hint: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details: dict[str, str] = {k: str(v) for k, v in (details or {}).items()}
        if hint is not None:
            self.hint = hint

    @property
    def stage(self) -> Optional[str]:
        """Last scan stage that completed before the failure, if known."""
        return self.details.get("stage")

    def with_stage(self, stage: str) -> "ScannerError":
        # The innermost handler knows best; outer ones never overwrite it
        self.details.setdefault("stage", str(stage))
        return self

    def __str__(self) -> str:
        if not self.details:
            return self.message
        context = ", ".join(f"{key}={value}" for key, value in self.details.items())
        return f"{self.message} ({context})"
