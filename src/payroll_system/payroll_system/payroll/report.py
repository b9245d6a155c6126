from __future__ import annotations

import csv
import io
from dataclasses import dataclass

import pandas as pd

from ..common.datetime_utils import Period
from ..common.money import as_float
from .repository import PayrollRepository

REPORT_COLUMNS = [
    "name",
    "period_start",
    "period_end",
    "basic_salary",
    "overload_pay",
    "deductions",
    "net_pay",
    "status",
    "released_at",
    "archived_at",
]

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@dataclass(frozen=True)
class ReportData:
    period: Period
    rows: list[dict]

    def filename(self, extension: str) -> str:
        return f"payroll_{self.period.start.strftime('%Y%m%d')}_{self.period.end.strftime('%Y%m%d')}.{extension}"


class PayrollReportService:
    """Payroll register for one period, exported as xlsx or csv."""

    def __init__(self, payroll: PayrollRepository):
        self._payroll = payroll

    def build_payroll_report(self, period: Period) -> ReportData:
        rows = []
        for e in self._payroll.list_for_period(period, live_only=False):
            rows.append(
                {
                    "name": e.user_name or f"#{e.user_id}",
                    "period_start": e.period_start.strftime("%Y-%m-%d"),
                    "period_end": e.period_end.strftime("%Y-%m-%d"),
                    "basic_salary": as_float(e.basic_salary),
                    "overload_pay": as_float(e.overtime),
                    "deductions": as_float(e.deductions),
                    "net_pay": as_float(e.net_pay),
                    "status": e.status.value,
                    "released_at": e.released_at.strftime("%Y-%m-%d %H:%M") if e.released_at else "",
                    "archived_at": e.archived_at.strftime("%Y-%m-%d %H:%M") if e.archived_at else "",
                }
            )
        return ReportData(period=period, rows=rows)

    def to_xlsx(self, data: ReportData) -> io.BytesIO:
        df = pd.DataFrame(data.rows, columns=REPORT_COLUMNS)
        out = io.BytesIO()
        with pd.ExcelWriter(out, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name="Payroll")
        out.seek(0)
        return out

    def to_csv(self, data: ReportData) -> bytes:
        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=REPORT_COLUMNS)
        writer.writeheader()
        for row in data.rows:
            writer.writerow(row)
        return out.getvalue().encode("utf-8-sig")
