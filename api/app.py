import logging
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response

from main import ReconciliationSession
from models.schema import (AttendanceStats, EmployeeInfo, EmployeeShiftOverride, EmployeeSummary,
                           ImportSummary, LogImport, OverrideAssignment, PunchFilter, ShiftPreset,
                           ShiftPresetInput, ShiftPresetUpdate, StatusedPunch, TimelineDay)
from utils.config import LOG_LEVEL, STORE_PATH
from utils.export import export_filename
from utils.store import JsonFileStore, LastPresetError, PresetNotFoundError, ShiftPresetStore


def create_app(session: Optional[ReconciliationSession] = None) -> FastAPI:
    logging.basicConfig(level=LOG_LEVEL)
    if session is None:
        session = ReconciliationSession(ShiftPresetStore(JsonFileStore(STORE_PATH)))
        logging.info(f"Shift presets loaded from {STORE_PATH}")

    app = FastAPI(title="Punch Reconcile")
    app.state.session = session
    register_routes(app)
    return app


def get_session(request: Request) -> ReconciliationSession:
    return request.app.state.session


def register_routes(app: FastAPI) -> None:

    @app.post("/logs", response_model=ImportSummary)
    def import_log(payload: LogImport, session: ReconciliationSession = Depends(get_session)):
        result = session.load_log(payload.content)
        return ImportSummary(
            records=len(result.punches),
            employees=len(result.employees),
            days=len(result.dates),
            skipped_lines=result.skipped_lines
        )

    @app.get("/stats", response_model=AttendanceStats)
    def read_stats(session: ReconciliationSession = Depends(get_session)):
        return session.stats()

    @app.get("/employees", response_model=List[EmployeeInfo])
    def list_employees(session: ReconciliationSession = Depends(get_session)):
        return session.employees()

    @app.get("/dates", response_model=List[str])
    def list_dates(session: ReconciliationSession = Depends(get_session)):
        return session.dates()

    @app.post("/filters", response_model=AttendanceStats)
    def apply_filters(criteria: PunchFilter, session: ReconciliationSession = Depends(get_session)):
        session.apply_filters(criteria)
        return session.stats()

    @app.delete("/filters", response_model=AttendanceStats)
    def reset_filters(session: ReconciliationSession = Depends(get_session)):
        session.reset_filters()
        return session.stats()

    @app.get("/punches", response_model=List[StatusedPunch])
    def list_punches(session: ReconciliationSession = Depends(get_session)):
        return session.statused_punches()

    @app.get("/attendance", response_model=List[EmployeeSummary])
    def list_attendance(session: ReconciliationSession = Depends(get_session)):
        return session.employee_summaries()

    @app.get("/attendance/{employee_id}", response_model=EmployeeSummary)
    def read_attendance(employee_id: str, session: ReconciliationSession = Depends(get_session)):
        summary = session.employee_detail(employee_id)
        if summary is None:
            raise HTTPException(status_code=404, detail=f"No punches for employee {employee_id}")
        return summary

    @app.get("/timeline", response_model=List[TimelineDay])
    def read_timeline(session: ReconciliationSession = Depends(get_session)):
        return session.timeline()

    @app.get("/export")
    def export_punches(session: ReconciliationSession = Depends(get_session)):
        content = session.export_csv()
        if content is None:
            raise HTTPException(status_code=400, detail="No punches to export")
        return Response(
            content=content,
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'}
        )

    @app.get("/presets", response_model=List[ShiftPreset])
    def list_presets(session: ReconciliationSession = Depends(get_session)):
        return session.presets.presets

    @app.post("/presets", response_model=ShiftPreset, status_code=201)
    def create_preset(data: ShiftPresetInput, session: ReconciliationSession = Depends(get_session)):
        return session.presets.create(data)

    @app.put("/presets/{preset_id}", response_model=ShiftPreset)
    def update_preset(preset_id: int, changes: ShiftPresetUpdate,
                      session: ReconciliationSession = Depends(get_session)):
        try:
            return session.presets.update(preset_id, changes)
        except PresetNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))

    @app.post("/presets/{preset_id}/default", response_model=ShiftPreset)
    def make_default(preset_id: int, session: ReconciliationSession = Depends(get_session)):
        try:
            return session.presets.set_default(preset_id)
        except PresetNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))

    @app.delete("/presets/{preset_id}", status_code=204)
    def delete_preset(preset_id: int, session: ReconciliationSession = Depends(get_session)):
        try:
            session.presets.delete(preset_id)
        except PresetNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except LastPresetError as e:
            raise HTTPException(status_code=409, detail=str(e))
        return Response(status_code=204)

    @app.get("/overrides", response_model=Dict[str, EmployeeShiftOverride])
    def list_overrides(session: ReconciliationSession = Depends(get_session)):
        return session.presets.overrides

    @app.put("/overrides/{employee_id}", response_model=Optional[EmployeeShiftOverride])
    def assign_shift(employee_id: str, assignment: OverrideAssignment,
                     session: ReconciliationSession = Depends(get_session)):
        try:
            return session.presets.assign(employee_id, assignment.preset_id)
        except PresetNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))

    @app.delete("/overrides/{employee_id}", status_code=204)
    def remove_shift(employee_id: str, session: ReconciliationSession = Depends(get_session)):
        session.presets.remove_override(employee_id)
        return Response(status_code=204)
