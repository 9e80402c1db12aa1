import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .config import get_settings
from .database import get_db
from .models import Breed, ChecklistItem, Pig, Setting
from .schemas import (
    BreedIn, BreedOut, ChecklistItemIn, ChecklistItemOut,
    PigIn, PigOut, ObservationIn, ObservationOut, SymptomOut,
    RiskOut, TimingOut, ReportOut, DashboardOut, RiskAlertOut,
    MonitoringTimeIn, MonitoringTimeOut,
)
from .assessment import (
    assess_pig, get_start_time, pig_records, pig_timing,
    record_observation, risk_alerts, to_observation,
)
from .report import build_report
from .risk_engine import RiskLevel
from .scheduler import monitoring_day, priority_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1")

def get_now() -> datetime:
    """Current instant in the canonical monitoring time zone."""
    return datetime.now(get_settings().tz)

def _ensure_pig(db: Session, pig_id: int) -> Pig:
    pig = db.query(Pig).filter(Pig.id == pig_id).first()
    if not pig:
        raise HTTPException(status_code=404, detail="Pig not found")
    return pig

def _risk_out(pig: Pig, analysis, breed_missing: bool) -> RiskOut:
    return RiskOut(
        pig_id=pig.id,
        temperature_score=analysis.temperature_score,
        symptom_score=analysis.symptom_score,
        progression_score=analysis.progression_score,
        total_score=analysis.total_score,
        risk_level=analysis.risk_level.value,
        color=analysis.color,
        breed_missing=breed_missing,
    )

def _timing_out(pig_id: int, timing, last) -> TimingOut:
    remaining = timing.time_remaining
    return TimingOut(
        pig_id=pig_id,
        can_monitor=timing.can_monitor,
        state=timing.state.value,
        next_monitoring_time=timing.next_monitoring_time,
        time_remaining_seconds=int(remaining.total_seconds()) if remaining is not None else None,
        time_remaining_text=timing.time_remaining_text,
        last_monitored_time=last,
    )

# -----------------------------
# Reference data
# -----------------------------
@router.get("/breeds", response_model=list[BreedOut])
def list_breeds(db: Session = Depends(get_db)):
    return db.query(Breed).order_by(Breed.name.asc()).all()

@router.post("/breeds", response_model=BreedOut, status_code=201)
def create_breed(payload: BreedIn, db: Session = Depends(get_db)):
    if db.query(Breed).filter(Breed.name == payload.name).first():
        raise HTTPException(status_code=409, detail="Breed already exists")
    breed = Breed(**payload.model_dump())
    db.add(breed)
    db.commit()
    db.refresh(breed)
    return breed

@router.put("/breeds/{breed_id}", response_model=BreedOut)
def update_breed(breed_id: int, payload: BreedIn, db: Session = Depends(get_db)):
    breed = db.query(Breed).filter(Breed.id == breed_id).first()
    if not breed:
        raise HTTPException(status_code=404, detail="Breed not found")
    for key, value in payload.model_dump().items():
        setattr(breed, key, value)
    db.commit()
    db.refresh(breed)
    return breed

@router.get("/checklist", response_model=list[ChecklistItemOut])
def list_checklist(db: Session = Depends(get_db)):
    return db.query(ChecklistItem).order_by(ChecklistItem.id.asc()).all()

@router.post("/checklist", response_model=ChecklistItemOut, status_code=201)
def create_checklist_item(payload: ChecklistItemIn, db: Session = Depends(get_db)):
    item = ChecklistItem(
        symptom=payload.symptom.strip(),
        risk_weight=payload.risk_weight,
        treatment_recommendation=payload.treatment_recommendation.strip(),
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item

# -----------------------------
# Pigs
# -----------------------------
@router.get("/pigs", response_model=list[PigOut])
def list_pigs(db: Session = Depends(get_db)):
    return db.query(Pig).order_by(Pig.id.asc()).all()

@router.post("/pigs", response_model=PigOut, status_code=201)
def create_pig(payload: PigIn, db: Session = Depends(get_db)):
    if not db.query(Breed).filter(Breed.id == payload.breed_id).first():
        raise HTTPException(status_code=404, detail="Breed not found")
    pig = Pig(**payload.model_dump())
    db.add(pig)
    db.commit()
    db.refresh(pig)
    return pig

@router.get("/pigs/{pig_id}", response_model=PigOut)
def get_pig(pig_id: int, db: Session = Depends(get_db)):
    return _ensure_pig(db, pig_id)

# -----------------------------
# Observations
# -----------------------------
@router.get("/pigs/{pig_id}/observations", response_model=list[ObservationOut])
def list_observations(pig_id: int, db: Session = Depends(get_db)):
    _ensure_pig(db, pig_id)
    out = []
    for record in pig_records(db, pig_id):
        obs = to_observation(record)
        out.append(
            ObservationOut(
                id=record.id,
                pig_id=record.pig_id,
                date=record.date,
                temperature=record.temperature,
                notes=record.notes,
                recorded_at=record.recorded_at,
                symptoms=[SymptomOut(**vars(s)) for s in obs.symptoms],
            )
        )
    return out

@router.post("/pigs/{pig_id}/observations", response_model=ObservationOut, status_code=201)
def add_observation(
    pig_id: int,
    payload: ObservationIn,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    pig = _ensure_pig(db, pig_id)

    timing, _ = pig_timing(db, pig_id, now)
    if not timing.can_monitor:
        logger.warning(
            "rejected observation for pig %s: %s, next window %s",
            pig_id, timing.state.value, timing.next_monitoring_time,
        )
        raise HTTPException(
            status_code=409,
            detail={
                "message": "Monitoring is not allowed right now",
                "state": timing.state.value,
                "next_monitoring_time": timing.next_monitoring_time,
                "time_remaining": timing.time_remaining_text,
            },
        )

    known = {i.id for i in db.query(ChecklistItem.id).all()}
    unknown = sorted(set(payload.checklist) - known)
    if unknown:
        raise HTTPException(status_code=422, detail=f"Unknown checklist items: {unknown}")

    record = record_observation(db, pig, payload.temperature, payload.checklist, now, payload.notes)
    obs = to_observation(record)
    return ObservationOut(
        id=record.id,
        pig_id=record.pig_id,
        date=record.date,
        temperature=record.temperature,
        notes=record.notes,
        recorded_at=record.recorded_at,
        symptoms=[SymptomOut(**vars(s)) for s in obs.symptoms],
    )

# -----------------------------
# Derived views
# -----------------------------
@router.get("/pigs/{pig_id}/risk", response_model=RiskOut)
def pig_risk(pig_id: int, db: Session = Depends(get_db)):
    pig = _ensure_pig(db, pig_id)
    analysis, breed_missing = assess_pig(db, pig)
    return _risk_out(pig, analysis, breed_missing)

@router.get("/pigs/{pig_id}/timing", response_model=TimingOut)
def pig_monitoring_timing(pig_id: int, db: Session = Depends(get_db), now: datetime = Depends(get_now)):
    _ensure_pig(db, pig_id)
    timing, last = pig_timing(db, pig_id, now)
    return _timing_out(pig_id, timing, last)

@router.get("/pigs/{pig_id}/report", response_model=ReportOut)
def pig_report(pig_id: int, db: Session = Depends(get_db), now: datetime = Depends(get_now)):
    pig = _ensure_pig(db, pig_id)
    return build_report(db, pig, now)

@router.get("/dashboard", response_model=DashboardOut)
def dashboard(db: Session = Depends(get_db), now: datetime = Depends(get_now)):
    start_time = get_start_time(db)
    today = monitoring_day(now, start_time, get_settings().monitoring_timezone)

    rows = []
    monitored = 0
    alerts = 0
    for pig in db.query(Pig).order_by(Pig.id.asc()).all():
        analysis, _ = assess_pig(db, pig)
        timing, last = pig_timing(db, pig.id, now, start_time)
        if last is not None:
            monitored += 1
        if analysis.risk_level in (RiskLevel.HIGH, RiskLevel.MODERATE):
            alerts += 1
        rows.append((timing, pig, analysis, last))

    rows.sort(key=lambda row: priority_key(row[0]))

    return DashboardOut(
        date=today,
        total_pigs=len(rows),
        monitored_count=monitored,
        not_monitored_count=len(rows) - monitored,
        alerts_count=alerts,
        pigs=[
            {
                "id": pig.id,
                "name": pig.name,
                "risk_level": analysis.risk_level.value,
                "timing": _timing_out(pig.id, timing, last),
            }
            for timing, pig, analysis, last in rows
        ],
    )

@router.get("/alerts", response_model=list[RiskAlertOut])
def alerts(db: Session = Depends(get_db)):
    return risk_alerts(db)

# -----------------------------
# Settings
# -----------------------------
@router.get("/settings/monitoring-time", response_model=MonitoringTimeOut)
def get_monitoring_time(db: Session = Depends(get_db)):
    return MonitoringTimeOut(
        monitoring_start_time=get_start_time(db),
        timezone=get_settings().monitoring_timezone,
    )

@router.put("/settings/monitoring-time", response_model=MonitoringTimeOut)
def update_monitoring_time(payload: MonitoringTimeIn, db: Session = Depends(get_db)):
    setting = db.query(Setting).order_by(Setting.id.asc()).first()
    if not setting:
        setting = Setting()
        db.add(setting)
    setting.monitoring_start_time = payload.monitoring_start_time
    db.commit()
    logger.info("monitoring start time set to %s", payload.monitoring_start_time)
    return MonitoringTimeOut(
        monitoring_start_time=setting.monitoring_start_time,
        timezone=get_settings().monitoring_timezone,
    )
