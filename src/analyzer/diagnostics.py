from dataclasses import dataclass, asdict
from typing import Optional


class Severity:
    ERROR = 'error'
    WARNING = 'warning'


@dataclass
class Diagnostic:
    """A single reported problem. Lines and columns are 1-based."""
    file_path: str
    line: int
    column: int
    end_line: int
    end_column: int
    message: str
    severity: str = Severity.ERROR
    rule: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    def sort_key(self):
        return (self.line, self.column, self.message)

    def to_dict(self) -> dict:
        return asdict(self)
