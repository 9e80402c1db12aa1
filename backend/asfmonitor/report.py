from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import List, Dict, Any, Optional

from sqlalchemy.orm import Session

from .config import get_settings
from .models import Breed, Pig
from .risk_engine import latest_symptom_details, temperature_deviation, risk_color
from .assessment import assess_pig, get_start_time, pig_records, to_breed_profile, to_observation
from .scheduler import monitoring_day


def _history_days(today: date, days: int) -> List[date]:
    return [today - timedelta(days=i) for i in range(days - 1, -1, -1)]


def build_report(
    db: Session,
    pig: Pig,
    now: datetime,
    days: int = 7,
) -> Dict[str, Any]:
    """
    Per-pig health report.
    - Current risk analysis and the treatments for the newest session's symptoms,
      listed even when the breed record is missing
    - Last `days` monitoring days, oldest first: newest temperature of each day
      flagged against the breed band, and the number of distinct symptoms seen
    """
    settings = get_settings()
    today = monitoring_day(now, get_start_time(db), settings.monitoring_timezone)

    records = pig_records(db, pig.id)
    observations = [to_observation(r) for r in records]
    analysis, breed_missing = assess_pig(db, pig, observations)

    breed = db.query(Breed).filter(Breed.id == pig.breed_id).first()
    profile = to_breed_profile(breed) if breed else None

    # records are newest first, so the first hit per day wins
    temps: Dict[date, float] = {}
    symptoms: Dict[date, set] = {}
    for obs in observations:
        temps.setdefault(obs.date, obs.temperature)
        symptoms.setdefault(obs.date, set()).update(obs.symptom_ids)

    points: List[Dict[str, Any]] = []
    for day in _history_days(today, days):
        temp: Optional[float] = temps.get(day)
        abnormal = False
        if temp is not None and profile is not None:
            abnormal = temperature_deviation(temp, profile, pig.category) > 0
        points.append(
            {
                "date": day,
                "label": day.strftime("%a"),
                "temperature": temp,
                "abnormal": abnormal,
                "symptom_count": len(symptoms.get(day, ())),
            }
        )

    return {
        "pig_id": pig.id,
        "risk": {
            "pig_id": pig.id,
            "temperature_score": analysis.temperature_score,
            "symptom_score": analysis.symptom_score,
            "progression_score": analysis.progression_score,
            "total_score": analysis.total_score,
            "risk_level": analysis.risk_level.value,
            "color": risk_color(analysis.risk_level),
            "breed_missing": breed_missing,
        },
        "latest_temperature": observations[0].temperature if observations else None,
        "symptom_details": [
            {"symptom": symptom, "treatment": treatment}
            for symptom, treatment in latest_symptom_details(observations)
        ],
        "symptoms_count": len(observations[0].symptoms) if observations else 0,
        "history": points,
        "has_temperature_data": any(p["temperature"] is not None for p in points),
    }
