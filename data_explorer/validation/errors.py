from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from data_explorer.core.exceptions import ExplorerError


@dataclass(frozen=True)
class ValidationIssue:
    """
    One problem with an argument passed to the app factory.

    code: stable upper-case tag (e.g. "HEADER_TYPE") tests and callers can match on
    argument: name of the offending argument, when there is one
    """
    code: str
    message: str
    argument: Optional[str] = None

    def __str__(self) -> str:
        where = f" [{self.argument}]" if self.argument else ""
        return f"{self.code}{where}: {self.message}"


class ValidationError(ExplorerError, ValueError):
    """Raised at setup time, before any session exists, listing every issue found."""

    def __init__(self, issues: List[ValidationIssue]):
        if not issues:
            raise ValueError("ValidationError needs at least one issue")
        self.issues = list(issues)
        super().__init__("\n".join(str(i) for i in self.issues))

    @classmethod
    def single(cls, code: str, message: str, argument: Optional[str] = None) -> ValidationError:
        return cls([ValidationIssue(code, message, argument)])

    @property
    def codes(self) -> List[str]:
        return [i.code for i in self.issues]
