from enum import StrEnum

from pydantic import BaseModel


class LintSeverity(StrEnum):
    ERROR = "error"
    WARNING = "warning"


class LintIssue(BaseModel):
    line: int
    column: int
    rule: str
    severity: LintSeverity
    message: str

    def format(self, file_path: str) -> str:
        return f"{file_path}:{self.line}:{self.rule}:{self.severity.value}: {self.message}"
