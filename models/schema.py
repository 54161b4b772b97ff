from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from utils.helper import is_valid_time


def check_time(value: str) -> str:
    if not is_valid_time(value):
        raise ValueError(f"expected H:MM or HH:MM, got {value!r}")
    return value


TimeStr = Annotated[str, AfterValidator(check_time)]


class PunchEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    sequence_no: str
    device_id: str
    employee_id: str
    employee_name: str
    verify_method: str
    date: str
    time: str


class EmployeeInfo(BaseModel):
    employee_id: str
    name: str


class ParseResult(BaseModel):
    punches: List[PunchEvent]
    employees: Dict[str, str]
    dates: List[str]
    skipped_lines: int = 0


class TimePairs(BaseModel):
    clock_in: Optional[str] = None
    break_out: Optional[str] = None
    break_in: Optional[str] = None
    clock_out: Optional[str] = None


class ShiftPreset(BaseModel):
    """Stored with camelCase keys so the persisted JSON matches the settings schema."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    name: str
    icon: str = "🕘"
    start_time: str
    end_time: str
    work_hours: float
    break_hours: float
    is_next_day: bool = False
    is_default: bool = False


class ShiftPresetInput(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    icon: str = "🕘"
    start_time: TimeStr
    end_time: TimeStr
    work_hours: float
    break_hours: float
    is_next_day: bool = False


class ShiftPresetUpdate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: Optional[str] = None
    icon: Optional[str] = None
    start_time: Optional[TimeStr] = None
    end_time: Optional[TimeStr] = None
    work_hours: Optional[float] = None
    break_hours: Optional[float] = None
    is_next_day: Optional[bool] = None
    is_default: Optional[bool] = None


class EmployeeShiftOverride(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    preset_id: int
    work_hours: float
    break_hours: float
    is_next_day: bool = False


class OverrideAssignment(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    preset_id: Union[int, Literal["default"]]


class ResolvedShiftConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    work_hours: float
    break_hours: float
    is_next_day: bool = False


class DayAttendance(BaseModel):
    date: str
    display_date: str
    times: List[str]
    scan_count: int
    clock_in: Optional[str] = None
    break_out: Optional[str] = None
    break_in: Optional[str] = None
    clock_out: Optional[str] = None
    overtime_minutes: int = 0
    overtime_display: str = "-"


class EmployeeSummary(BaseModel):
    employee_id: str
    name: str
    scan_count: int
    day_count: int
    has_override: bool
    preset_id: Optional[int] = None
    config: ResolvedShiftConfig
    total_overtime_minutes: int = 0
    total_overtime_display: str = "-"
    days: List[DayAttendance] = []


class PunchFilter(BaseModel):
    date: Optional[str] = None
    employee_id: Optional[str] = None
    time_from: Optional[TimeStr] = None
    time_to: Optional[TimeStr] = None


class AttendanceStats(BaseModel):
    total_employees: int
    total_records: int
    total_days: int
    filtered_records: int


class ScanStatus(BaseModel):
    text: str
    css_class: str
    icon: str


class StatusedPunch(BaseModel):
    punch: PunchEvent
    display_date: str
    status: ScanStatus


class TimelineEmployee(BaseModel):
    employee_id: str
    name: str
    times: List[str]


class TimelineDay(BaseModel):
    date: str
    display_date: str
    day_name: str
    employee_count: int
    scan_count: int
    employees: List[TimelineEmployee]


class LogImport(BaseModel):
    content: str


class ImportSummary(BaseModel):
    records: int
    employees: int
    days: int
    skipped_lines: int
