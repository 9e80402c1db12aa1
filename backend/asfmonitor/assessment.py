from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session
from sqlalchemy import desc

from .config import DEFAULT_START_TIME, get_settings
from .models import Breed, ChecklistRecord, MonitoringRecord, Pig, Setting
from .risk_engine import (
    BreedProfile,
    ChecklistItem,
    Observation,
    RiskAnalysis,
    RiskLevel,
    analyze,
)
from .scheduler import MonitoringTiming, evaluate, monitoring_day

logger = logging.getLogger(__name__)


def get_start_time(db: Session) -> str:
    setting = db.query(Setting).order_by(Setting.id.asc()).first()
    if setting and setting.monitoring_start_time:
        return setting.monitoring_start_time
    return get_settings().default_start_time or DEFAULT_START_TIME


def to_breed_profile(breed: Breed) -> BreedProfile:
    return BreedProfile(
        id=breed.id,
        name=breed.name,
        min_temp_adult=breed.min_temp_adult,
        max_temp_adult=breed.max_temp_adult,
        min_temp_young=breed.min_temp_young,
        max_temp_young=breed.max_temp_young,
    )


def to_observation(record: MonitoringRecord) -> Observation:
    checked = [cr for cr in record.checklist if cr.checked and cr.item is not None]
    return Observation(
        id=record.id,
        date=record.date,
        temperature=record.temperature,
        notes=record.notes,
        recorded_at=record.recorded_at,
        symptoms=tuple(
            ChecklistItem(
                id=cr.item.id,
                symptom=cr.item.symptom,
                risk_weight=cr.item.risk_weight,
                treatment_recommendation=cr.item.treatment_recommendation,
            )
            for cr in sorted(checked, key=lambda cr: cr.checklist_id)
        ),
    )


def pig_records(db: Session, pig_id: int) -> List[MonitoringRecord]:
    return (
        db.query(MonitoringRecord)
        .filter(MonitoringRecord.pig_id == pig_id)
        .order_by(desc(MonitoringRecord.date), desc(MonitoringRecord.recorded_at), desc(MonitoringRecord.id))
        .all()
    )


def pig_observations(db: Session, pig_id: int) -> List[Observation]:
    return [to_observation(r) for r in pig_records(db, pig_id)]


def assess_pig(db: Session, pig: Pig, observations: Optional[List[Observation]] = None) -> tuple[RiskAnalysis, bool]:
    """
    Risk analysis for one pig.

    Returns (analysis, breed_missing). Without a breed record the engine is
    not run and the neutral Low result is returned.
    """
    breed = db.query(Breed).filter(Breed.id == pig.breed_id).first()
    if breed is None:
        logger.warning("pig %s references missing breed %s", pig.id, pig.breed_id)
        return RiskAnalysis(), True

    if observations is None:
        observations = pig_observations(db, pig.id)
    return analyze(observations, to_breed_profile(breed), pig.category), False


def last_monitored_today(db: Session, pig_id: int, today: date) -> Optional[str]:
    record = (
        db.query(MonitoringRecord)
        .filter(MonitoringRecord.pig_id == pig_id, MonitoringRecord.date == today)
        .order_by(desc(MonitoringRecord.recorded_at), desc(MonitoringRecord.id))
        .first()
    )
    if not record:
        return None
    stamp = record.recorded_at
    # HH:MM loses seconds; round up so the minimum gap is never shortened
    if stamp.second or stamp.microsecond:
        stamp = stamp.replace(second=0, microsecond=0) + timedelta(minutes=1)
    return stamp.strftime("%H:%M")


def pig_timing(db: Session, pig_id: int, now: datetime, start_time: Optional[str] = None) -> tuple[MonitoringTiming, Optional[str]]:
    settings = get_settings()
    start_time = start_time or get_start_time(db)
    today = monitoring_day(now, start_time, settings.monitoring_timezone)
    last = last_monitored_today(db, pig_id, today)
    timing = evaluate(now, start_time, last, settings.monitoring_timezone)
    return timing, last


def record_observation(
    db: Session,
    pig: Pig,
    temperature: float,
    checklist: dict[int, bool],
    now: datetime,
    notes: Optional[str] = None,
) -> MonitoringRecord:
    settings = get_settings()
    local_now = now.astimezone(settings.tz) if now.tzinfo else now
    start_time = get_start_time(db)

    record = MonitoringRecord(
        pig_id=pig.id,
        date=monitoring_day(local_now, start_time, settings.monitoring_timezone),
        temperature=temperature,
        notes=notes or None,
        recorded_at=local_now.replace(tzinfo=None),
    )
    for checklist_id, checked in checklist.items():
        record.checklist.append(ChecklistRecord(checklist_id=checklist_id, checked=bool(checked)))

    db.add(record)
    db.commit()
    db.refresh(record)

    logger.info(
        "recorded observation %s for pig %s: %.1f°C, %d symptom(s)",
        record.id, pig.id, temperature, sum(1 for v in checklist.values() if v),
    )
    return record


def _alert_body(pigs: List[Pig], level: str) -> str:
    n = len(pigs)
    names = ", ".join(p.name for p in pigs)
    return f"{n} pig{'s' if n > 1 else ''} showing {level} risk symptoms: {names}"


def risk_alerts(db: Session) -> List[dict]:
    """High and Moderate risk groups, worded as the push notifications."""
    high: List[Pig] = []
    moderate: List[Pig] = []
    for pig in db.query(Pig).order_by(Pig.id.asc()).all():
        analysis, _ = assess_pig(db, pig)
        if analysis.risk_level == RiskLevel.HIGH:
            high.append(pig)
        elif analysis.risk_level == RiskLevel.MODERATE:
            moderate.append(pig)

    alerts = []
    if high:
        alerts.append({
            "type": "high-risk",
            "title": "🚨 High Risk Alert",
            "body": _alert_body(high, "high"),
            "pig_names": [p.name for p in high],
        })
    if moderate:
        alerts.append({
            "type": "moderate-risk",
            "title": "⚠️ Moderate Risk Alert",
            "body": _alert_body(moderate, "moderate"),
            "pig_names": [p.name for p in moderate],
        })
    return alerts
