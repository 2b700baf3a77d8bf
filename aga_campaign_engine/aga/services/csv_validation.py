"""
CSV lead file column gate. Only the header row decides validity; the data
rows are counted for display.
"""
import csv
import io
from dataclasses import dataclass, field
from typing import List, Optional


class CsvFlow:
    STANDARD = "standard"
    LINKEDIN_URL = "linkedin_url"


_BASE_REQUIRED = ["First Name", "Last Name", "{linkedin}", "Company Website", "Email"]

LINKEDIN_COLUMN = {
    CsvFlow.STANDARD: "LinkedIn",
    CsvFlow.LINKEDIN_URL: "Linkedin URL",
}

OPTIONAL_COLUMNS = [
    "Job Title",
    "Industry",
    "Employee Count",
    "Company Name",
    "Company LinkedIn URL",
    "Phone Number",
    "Location",
]


@dataclass
class CsvValidationResult:
    valid: bool
    error: Optional[str] = None
    missing_columns: List[str] = field(default_factory=list)
    optional_columns: List[str] = field(default_factory=list)
    row_count: int = 0


def required_columns(flow: str = CsvFlow.STANDARD) -> List[str]:
    if flow not in LINKEDIN_COLUMN:
        raise ValueError(f"Unknown CSV flow: {flow}")
    linkedin = LINKEDIN_COLUMN[flow]
    return [linkedin if col == "{linkedin}" else col for col in _BASE_REQUIRED]


def validate_csv_columns(content: bytes, flow: str = CsvFlow.STANDARD) -> CsvValidationResult:
    """Header must contain every required column, matched exactly after trimming and unquoting."""
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return CsvValidationResult(valid=False, error="Error reading CSV file")

    if not text.strip():
        return CsvValidationResult(valid=False, error="CSV file is empty")

    try:
        rows = [row for row in csv.reader(io.StringIO(text)) if any(cell.strip() for cell in row)]
    except csv.Error:
        return CsvValidationResult(valid=False, error="Error reading CSV file")

    if not rows:
        return CsvValidationResult(valid=False, error="CSV file is empty")

    headers = [cell.strip().replace('"', "") for cell in rows[0]]
    missing = [col for col in required_columns(flow) if col not in headers]
    if missing:
        return CsvValidationResult(
            valid=False,
            error=f"Missing required columns: {', '.join(missing)}",
            missing_columns=missing,
        )

    return CsvValidationResult(
        valid=True,
        optional_columns=[col for col in OPTIONAL_COLUMNS if col in headers],
        row_count=len(rows) - 1,
    )
