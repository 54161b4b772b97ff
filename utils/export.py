import csv
import io
from datetime import date
from typing import List, Optional

import pandas as pd

from models.schema import PunchEvent

EXPORT_HEADERS = ["ลำดับ", "รหัสเครื่อง", "รหัสพนักงาน", "ชื่อพนักงาน", "Verify", "วันที่", "เวลา"]
BOM = "\ufeff"


def punches_to_csv(punches: List[PunchEvent]) -> bytes:
    """Serialize punches in PunchEvent field order, UTF-8 with BOM.

    The header line is plain; every data field is quoted.
    """
    rows = [
        [p.sequence_no, p.device_id, p.employee_id, p.employee_name, p.verify_method, p.date, p.time]
        for p in punches
    ]
    frame = pd.DataFrame(rows, columns=EXPORT_HEADERS, dtype=str)
    buffer = io.StringIO()
    buffer.write(",".join(EXPORT_HEADERS) + "\n")
    frame.to_csv(buffer, index=False, header=False, quoting=csv.QUOTE_ALL, lineterminator="\n")
    return (BOM + buffer.getvalue()).encode("utf-8")


def export_filename(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"attendance_export_{today.isoformat()}.csv"
