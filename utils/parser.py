import logging
import re
from typing import List, Optional

from models.schema import ParseResult, PunchEvent
from utils.helper import date_sort_key, is_valid_time

MIN_FIELDS = 6
TAB_SPLIT = re.compile(r"\t+")


def split_fields(line: str) -> Optional[List[str]]:
    """Split one data row into [no, device, employee, name, verify, date, time].

    Tab-delimited rows keep single spaces inside a field, so names such as
    "Somchai Jaidee" survive. Rows without tabs are split on whitespace runs
    and the name is whatever sits between the employee id and verify method.
    """
    if "\t" in line:
        parts = [p.strip() for p in TAB_SPLIT.split(line)]
        if len(parts) < MIN_FIELDS:
            return None
        date_time = parts[5].split()
        if len(date_time) == 1 and len(parts) > MIN_FIELDS:
            # some exports put date and time in separate columns
            date_time = date_time + parts[6].split()
        # a trailing token such as AM/PM makes the row malformed
        if len(date_time) != 2:
            return None
        return parts[:5] + date_time

    tokens = line.split()
    if len(tokens) < MIN_FIELDS + 1:
        return None
    name = " ".join(tokens[3:-3])
    return tokens[:3] + [name, tokens[-3], tokens[-2], tokens[-1]]


def parse_line(line: str) -> Optional[PunchEvent]:
    fields = split_fields(line)
    if fields is None:
        return None
    no, device_id, employee_id, name, verify, date_part, time_part = fields
    if not is_valid_time(time_part):
        return None
    return PunchEvent(
        sequence_no=no,
        device_id=device_id,
        employee_id=employee_id,
        employee_name=name,
        verify_method=verify,
        date=date_part,
        time=time_part
    )


def parse_log(content: str) -> ParseResult:
    punches = []
    employees = {}
    dates = set()
    skipped = 0

    lines = content.splitlines()
    for line_no, raw in enumerate(lines[1:], start=2):
        line = raw.strip()
        if not line:
            continue
        punch = parse_line(line)
        if punch is None:
            skipped += 1
            logging.debug(f"Skipping malformed row at line {line_no}: {line!r}")
            continue
        punches.append(punch)
        if punch.employee_id not in employees:
            employees[punch.employee_id] = punch.employee_name
        dates.add(punch.date)

    logging.info(f"Parsed {len(punches)} punches for {len(employees)} employees over {len(dates)} days ({skipped} rows skipped)")
    return ParseResult(
        punches=punches,
        employees=employees,
        dates=sorted(dates, key=date_sort_key),
        skipped_lines=skipped
    )
