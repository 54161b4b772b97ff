import logging
from typing import Dict, List, Optional

from models.schema import (AttendanceStats, DayAttendance, EmployeeInfo, EmployeeSummary,
                           ParseResult, PunchEvent, PunchFilter, ResolvedShiftConfig,
                           ScanStatus, StatusedPunch, TimelineDay, TimelineEmployee, TimePairs)
from utils.config import OVERNIGHT_CUTOFF_HOUR
from utils.export import punches_to_csv
from utils.helper import (date_sort_key, format_ot, format_thai_date, normalize_time,
                          split_time, thai_day_name, time_to_minutes)
from utils.parser import parse_log
from utils.store import ShiftPresetStore

MINUTES_PER_DAY = 24 * 60


def group_by_employee_day(punches: List[PunchEvent]) -> Dict[str, Dict[str, List[str]]]:
    """employee_id -> date -> ascending HH:MM scan times."""
    grouped: Dict[str, Dict[str, List[str]]] = {}
    for punch in punches:
        days = grouped.setdefault(punch.employee_id, {})
        days.setdefault(punch.date, []).append(normalize_time(punch.time))
    for days in grouped.values():
        for times in days.values():
            times.sort()
    return grouped


def classify_times(times: List[str]) -> TimePairs:
    times = sorted(times)
    count = len(times)
    if count == 0:
        return TimePairs()
    if count == 1:
        return TimePairs(clock_in=times[0])
    if count == 2:
        return TimePairs(clock_in=times[0], clock_out=times[1])
    if count == 3:
        return TimePairs(clock_in=times[0], break_out=times[1], clock_out=times[2])
    # anything between the third and the last scan is ignored
    return TimePairs(clock_in=times[0], break_out=times[1], break_in=times[2], clock_out=times[-1])


def calculate_overtime(clock_in: Optional[str], clock_out: Optional[str], config: ResolvedShiftConfig) -> int:
    if not clock_in or not clock_out:
        return 0

    in_minutes = time_to_minutes(clock_in)
    out_minutes = time_to_minutes(clock_out)
    out_hour = split_time(clock_out)[0]

    if config.is_next_day and out_hour < OVERNIGHT_CUTOFF_HOUR:
        out_minutes += MINUTES_PER_DAY

    total_worked = out_minutes - in_minutes
    expected = (config.work_hours + config.break_hours) * 60
    overtime = total_worked - expected
    return int(round(overtime)) if overtime > 0 else 0


def resolve_shift_config(store: ShiftPresetStore, employee_id: str) -> ResolvedShiftConfig:
    override = store.get_override(employee_id)
    if override:
        return ResolvedShiftConfig(
            work_hours=override.work_hours,
            break_hours=override.break_hours,
            is_next_day=override.is_next_day
        )
    preset = store.default()
    return ResolvedShiftConfig(
        work_hours=preset.work_hours,
        break_hours=preset.break_hours,
        is_next_day=preset.is_next_day
    )


def process_times_for_day(day: str, times: List[str], config: ResolvedShiftConfig) -> DayAttendance:
    pairs = classify_times(times)
    overtime = calculate_overtime(pairs.clock_in, pairs.clock_out, config)
    return DayAttendance(
        date=day,
        display_date=format_thai_date(day),
        times=sorted(times),
        scan_count=len(times),
        clock_in=pairs.clock_in,
        break_out=pairs.break_out,
        break_in=pairs.break_in,
        clock_out=pairs.clock_out,
        overtime_minutes=overtime,
        overtime_display=format_ot(overtime)
    )


def summarize_employees(punches: List[PunchEvent], store: ShiftPresetStore) -> List[EmployeeSummary]:
    names: Dict[str, str] = {}
    scan_counts: Dict[str, int] = {}
    for punch in punches:
        names.setdefault(punch.employee_id, punch.employee_name)
        scan_counts[punch.employee_id] = scan_counts.get(punch.employee_id, 0) + 1

    summaries = []
    for employee_id, days in group_by_employee_day(punches).items():
        config = resolve_shift_config(store, employee_id)
        override = store.get_override(employee_id)
        day_rows = [
            process_times_for_day(day, days[day], config)
            for day in sorted(days, key=date_sort_key)
        ]
        total_overtime = sum(d.overtime_minutes for d in day_rows)
        summaries.append(EmployeeSummary(
            employee_id=employee_id,
            name=names[employee_id],
            scan_count=scan_counts[employee_id],
            day_count=len(day_rows),
            has_override=override is not None,
            preset_id=override.preset_id if override else store.default().id,
            config=config,
            total_overtime_minutes=total_overtime,
            total_overtime_display=format_ot(total_overtime),
            days=day_rows
        ))
    return summaries


def determine_status(punch: PunchEvent) -> ScanStatus:
    hour = split_time(punch.time)[0]
    if 6 <= hour < 12:
        return ScanStatus(text="เข้างาน", css_class="status-in", icon="🟢")
    if 12 <= hour < 15:
        return ScanStatus(text="พักกลางวัน", css_class="status-break", icon="🟡")
    if 15 <= hour < 24:
        return ScanStatus(text="ออกงาน", css_class="status-out", icon="🔴")
    return ScanStatus(text="ดึก", css_class="status-out", icon="🌙")


def build_timeline(punches: List[PunchEvent]) -> List[TimelineDay]:
    by_date: Dict[str, List[PunchEvent]] = {}
    for punch in punches:
        by_date.setdefault(punch.date, []).append(punch)

    timeline = []
    for day in sorted(by_date, key=date_sort_key, reverse=True):
        records = by_date[day]
        employees: Dict[str, TimelineEmployee] = {}
        for punch in records:
            if punch.employee_id not in employees:
                employees[punch.employee_id] = TimelineEmployee(
                    employee_id=punch.employee_id, name=punch.employee_name, times=[])
            employees[punch.employee_id].times.append(punch.time)
        timeline.append(TimelineDay(
            date=day,
            display_date=format_thai_date(day),
            day_name=thai_day_name(day),
            employee_count=len(employees),
            scan_count=len(records),
            employees=list(employees.values())
        ))
    return timeline


def filter_punches(punches: List[PunchEvent], criteria: PunchFilter) -> List[PunchEvent]:
    time_from = normalize_time(criteria.time_from) if criteria.time_from else None
    time_to = normalize_time(criteria.time_to) if criteria.time_to else None

    result = []
    for punch in punches:
        if criteria.date and punch.date != criteria.date:
            continue
        if criteria.employee_id and punch.employee_id != criteria.employee_id:
            continue
        scan_time = normalize_time(punch.time)
        if time_from and scan_time < time_from:
            continue
        if time_to and scan_time > time_to:
            continue
        result.append(punch)
    return result


class ReconciliationSession:
    """State of one log import plus the long-lived shift configuration."""

    def __init__(self, presets: ShiftPresetStore):
        self.presets = presets
        self.result = ParseResult(punches=[], employees={}, dates=[])
        self.filtered: List[PunchEvent] = []
        self.criteria = PunchFilter()

    def load_log(self, content: str) -> ParseResult:
        self.result = parse_log(content)
        self.filtered = list(self.result.punches)
        self.criteria = PunchFilter()
        return self.result

    @property
    def punches(self) -> List[PunchEvent]:
        return self.result.punches

    def employees(self) -> List[EmployeeInfo]:
        return sorted(
            (EmployeeInfo(employee_id=k, name=v) for k, v in self.result.employees.items()),
            key=lambda e: e.name
        )

    def dates(self) -> List[str]:
        return list(self.result.dates)

    def apply_filters(self, criteria: PunchFilter) -> List[PunchEvent]:
        self.criteria = criteria
        self.filtered = filter_punches(self.result.punches, criteria)
        logging.info(f"Filter applied: {len(self.filtered)} of {len(self.result.punches)} punches")
        return self.filtered

    def reset_filters(self) -> List[PunchEvent]:
        self.criteria = PunchFilter()
        self.filtered = list(self.result.punches)
        return self.filtered

    def stats(self) -> AttendanceStats:
        return AttendanceStats(
            total_employees=len(self.result.employees),
            total_records=len(self.result.punches),
            total_days=len(self.result.dates),
            filtered_records=len(self.filtered)
        )

    def statused_punches(self) -> List[StatusedPunch]:
        return [
            StatusedPunch(punch=p, display_date=format_thai_date(p.date), status=determine_status(p))
            for p in self.filtered
        ]

    def employee_summaries(self) -> List[EmployeeSummary]:
        return summarize_employees(self.filtered, self.presets)

    def employee_detail(self, employee_id: str) -> Optional[EmployeeSummary]:
        punches = [p for p in self.filtered if p.employee_id == employee_id]
        if not punches:
            return None
        return summarize_employees(punches, self.presets)[0]

    def timeline(self) -> List[TimelineDay]:
        return build_timeline(self.filtered)

    def export_csv(self) -> Optional[bytes]:
        if not self.filtered:
            logging.warning("Export requested with no punches to export")
            return None
        return punches_to_csv(self.filtered)
