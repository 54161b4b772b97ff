import csv
import io
from datetime import date

from utils.export import EXPORT_HEADERS, export_filename, punches_to_csv
from utils.helper import format_ot, format_thai_date, normalize_time, thai_day_name
from utils.parser import parse_log

HEADER = "No\tDevID\tUserID\tName\tVerify\tDateTime"


def test_parses_rows_in_file_order():
    content = "\n".join([
        HEADER,
        "2\t1\t100\tsomchai\tFP\t2024/1/5 19:00",
        "1\t1\t100\tsomchai\tFP\t2024/1/5 09:00",
    ])
    result = parse_log(content)
    assert [p.sequence_no for p in result.punches] == ["2", "1"]
    first = result.punches[0]
    assert first.device_id == "1"
    assert first.employee_id == "100"
    assert first.employee_name == "somchai"
    assert first.verify_method == "FP"
    assert first.date == "2024/1/5"
    assert first.time == "19:00"


def test_header_and_blank_lines_are_not_punches():
    content = HEADER + "\n\n1\t1\t100\tsomchai\tFP\t2024/1/5 09:00\n   \n"
    result = parse_log(content)
    assert len(result.punches) == 1
    assert result.skipped_lines == 0


def test_short_rows_are_skipped():
    content = "\n".join([
        HEADER,
        "1\t1\t100\tsomchai\tFP\t2024/1/5 09:00",
        "2\t1\t100\tsomchai",
        "garbage",
        "3\t1\t101\tanong\tFP\t2024/1/5 08:30",
    ])
    result = parse_log(content)
    assert len(result.punches) == 2
    assert result.skipped_lines == 2


def test_count_matches_well_formed_lines():
    rows = [f"{i}\t1\t10{i % 3}\tuser{i % 3}\tFP\t2024/1/{1 + i % 4} 0{i % 10}:15" for i in range(25)]
    result = parse_log("\n".join([HEADER] + rows + ["", "x\ty"]))
    assert len(result.punches) == 25


def test_rows_with_invalid_time_are_skipped():
    content = "\n".join([
        HEADER,
        "1\t1\t100\tsomchai\tFP\t2024/1/5 09:00",
        "2\t1\t100\tsomchai\tFP\t2024/1/5",
        "3\t1\t100\tsomchai\tFP\t2024/1/5 24:00",
        "4\t1\t100\tsomchai\tFP\t2024/1/5 noon",
        "5\t1\t101\tanong\tFP\t2024/1/5 18:00",
    ])
    result = parse_log(content)
    assert [p.time for p in result.punches] == ["09:00", "18:00"]
    assert result.skipped_lines == 3


def test_trailing_am_pm_is_not_truncated():
    content = "\n".join([
        HEADER,
        "1\t1\t100\tsomchai\tFP\t2024/1/5 9:00 AM",
        "2\t1\t100\tsomchai\tFP\t2024/1/5\t9:00 PM",
        "3 1 100 somchai FP 2024/1/5 9:00 PM",
    ])
    result = parse_log(content)
    assert result.punches == []
    assert result.skipped_lines == 3


def test_date_and_time_in_separate_columns():
    result = parse_log(HEADER + "\n1\t1\t100\tsomchai\tFP\t2024/1/5\t09:30")
    assert result.punches[0].date == "2024/1/5"
    assert result.punches[0].time == "09:30"


def test_names_with_spaces_in_tab_rows():
    result = parse_log(HEADER + "\n1\t1\t100\tSomchai Jaidee\tFP\t2024/1/5 09:00")
    assert result.punches[0].employee_name == "Somchai Jaidee"
    assert result.punches[0].time == "09:00"


def test_space_separated_rows():
    result = parse_log("header\n1 1 100 somchai FP 2024/1/5 9:05\n2   1 101 mali  Card  2024/1/5   18:00")
    assert [(p.employee_id, p.time) for p in result.punches] == [("100", "9:05"), ("101", "18:00")]
    assert result.punches[1].verify_method == "Card"


def test_collects_employees_and_dates():
    content = "\n".join([
        HEADER,
        "1\t1\t100\tsomchai\tFP\t2024/1/10 09:00",
        "2\t1\t100\tsomchai-renamed\tFP\t2024/1/9 09:00",
        "3\t1\t101\tanong\tFP\t2024/1/10 09:00",
    ])
    result = parse_log(content)
    assert result.employees == {"100": "somchai", "101": "anong"}
    assert result.dates == ["2024/1/9", "2024/1/10"]


def test_duplicate_scans_are_kept():
    row = "1\t1\t100\tsomchai\tFP\t2024/1/5 09:00"
    result = parse_log("\n".join([HEADER, row, row]))
    assert len(result.punches) == 2


def test_windows_line_endings():
    result = parse_log(HEADER + "\r\n1\t1\t100\tsomchai\tFP\t2024/1/5 09:00\r\n")
    assert result.punches[0].time == "09:00"


def test_helpers():
    assert normalize_time("9:05") == "09:05"
    assert normalize_time("09:05:59") == "09:05"
    assert format_ot(0) == "-"
    assert format_ot(45) == "45 น."
    assert format_ot(120) == "2 ชม."
    assert format_ot(135) == "2 ชม. 15 น."
    assert format_thai_date("2024/12/31") == "31 ธ.ค. 2024"
    assert format_thai_date("bad") == "bad"
    assert thai_day_name("2024/1/7") == "วันอาทิตย์"


def test_csv_export_shape():
    result = parse_log(HEADER + "\n1\t7\t100\tSomchai Jaidee\tFP\t2024/1/5 09:00")
    data = punches_to_csv(result.punches)
    assert data.startswith(b"\xef\xbb\xbf")
    text = data.decode("utf-8-sig")
    assert text.splitlines()[0] == ",".join(EXPORT_HEADERS)
    assert text.splitlines()[1] == '"1","7","100","Somchai Jaidee","FP","2024/1/5","09:00"'
    rows = list(csv.reader(io.StringIO(text)))
    assert rows[0] == EXPORT_HEADERS
    assert rows[1] == ["1", "7", "100", "Somchai Jaidee", "FP", "2024/1/5", "09:00"]


def test_export_filename():
    assert export_filename(date(2024, 3, 1)) == "attendance_export_2024-03-01.csv"
