"""
Spreadsheet export for tickets and reports.

`flatten` turns records into a rectangular sheet of strings (header row
first) plus a width hint per column; `build_workbook` writes that sheet to
an .xlsx file in memory.
"""
from datetime import date, datetime
from io import BytesIO
from typing import Any, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from ..config import settings


MAX_COLUMN_WIDTH = 50
COLUMN_PADDING = 2
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# (header, attribute, is_date)
Column = Tuple[str, str, bool]

TICKET_COLUMNS: List[Column] = [
    ("Ticket No", "ticket_no", False),
    ("Date", "date", True),
    ("Project Type", "project_type", False),
    ("Received By", "received_by", False),
    ("Site Name", "site_name", False),
    ("Contact Person", "contact_person", False),
    ("Mobile", "mobile", False),
    ("Address", "address", False),
    ("Issue", "issue", False),
    ("Remark Details", "remark_details", False),
    ("Attended By", "attended_by", False),
    ("Attended Date", "attended_date", True),
    ("Ticket Status", "ticket_status", False),
    ("Closing Date", "closing_date", True),
    ("Paid Status", "paid_status", False),
    ("Amount Received", "amount_received", False),
    ("Feedback", "feedback", False),
    ("Feedback Date", "feedback_date", True),
    ("Feedback Taken By", "feedback_taken_by", False),
    ("Final Remark", "final_remark", False),
]

REPORT_COLUMNS: List[Column] = [
    ("Name", "name", False),
    ("Date", "date", True),
    ("KM In", "km_in", False),
    ("KM Out", "km_out", False),
    ("Site 1", "site1", False),
    ("Service Report 1", "service_report1", False),
    ("Site 2", "site2", False),
    ("Service Report 2", "service_report2", False),
    ("Site 3", "site3", False),
    ("Site 4", "site4", False),
    ("Service Report 3", "service_report3", False),
    ("Transport Mode", "transport_mode", False),
    ("Total KM", "total_km", False),
    ("Amount", "amount", False),
    ("Paid On", "paid_on", True),
]

COLUMNS = {
    "tickets": TICKET_COLUMNS,
    "reports": REPORT_COLUMNS,
}

SHEET_TITLES = {
    "tickets": "Tickets",
    "reports": "Reports",
}


class ExportError(Exception):
    pass


class Sheet(NamedTuple):
    rows: List[List[str]]  # rows[0] is the header row
    widths: List[int]

    @property
    def header(self) -> List[str]:
        return self.rows[0]


def _value(record: Any, attr: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(attr)
    return getattr(record, attr, None)


def format_date(value: Any, fmt: Optional[str] = None) -> str:
    fmt = fmt or settings.export_date_format
    if isinstance(value, str):
        # ISO strings coming from JSON payloads
        value = datetime.fromisoformat(value) if "T" in value else date.fromisoformat(value)
    if isinstance(value, datetime):
        value = value.date()
    return value.strftime(fmt)


def render_cell(value: Any, is_date: bool = False, date_format: Optional[str] = None) -> str:
    if value is None:
        return ""
    if is_date or isinstance(value, date):
        return format_date(value, date_format)
    return str(value)


def column_widths(rows: Sequence[Sequence[str]]) -> List[int]:
    widths = []
    for col in zip(*rows):
        longest = max(len(cell) for cell in col)
        widths.append(min(longest + COLUMN_PADDING, MAX_COLUMN_WIDTH))
    return widths


def flatten(records: Optional[Sequence[Any]], record_type: str, date_format: Optional[str] = None) -> Sheet:
    if record_type not in COLUMNS:
        raise ValueError(f"Unknown record type: {record_type}")
    if not records:
        raise ExportError("No data to export")
    columns = COLUMNS[record_type]
    rows = [[header for header, _, _ in columns]]
    for record in records:
        rows.append([render_cell(_value(record, attr), is_date, date_format) for _, attr, is_date in columns])
    return Sheet(rows=rows, widths=column_widths(rows))


def build_workbook(sheet: Sheet, title: str) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = title
    for row in sheet.rows:
        ws.append(row)
    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(fill_type="solid", fgColor="1E40AF")
    for cell in ws[1]:
        cell.font = header_font
        cell.fill = header_fill
    for idx, width in enumerate(sheet.widths, start=1):
        ws.column_dimensions[get_column_letter(idx)].width = width
    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()


def export_filename(base: str, today: Optional[date] = None) -> str:
    return f"{base}_{(today or date.today()).isoformat()}.xlsx"


def export_records(records: Sequence[Any], record_type: str) -> bytes:
    sheet = flatten(records, record_type)
    return build_workbook(sheet, SHEET_TITLES[record_type])
