import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Iterable, Optional

logger = logging.getLogger(__name__)


class Category(str, Enum):
    ADULT = "Adult"
    YOUNG = "Young"


class RiskLevel(str, Enum):
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"


RISK_COLORS = {
    RiskLevel.HIGH: "#FF453A",
    RiskLevel.MODERATE: "#FF9500",
    RiskLevel.LOW: "#30D158",
}

MAX_TEMPERATURE_SCORE = 25
MAX_SYMPTOM_SCORE = 50
MAX_PROGRESSION_SCORE = 25
MAX_TOTAL_SCORE = 100


@dataclass(frozen=True)
class ChecklistItem:
    id: int
    symptom: str
    risk_weight: int  # 1..5
    treatment_recommendation: str = ""


@dataclass(frozen=True)
class Observation:
    id: int
    date: date
    temperature: float
    symptoms: tuple[ChecklistItem, ...] = ()
    notes: Optional[str] = None
    recorded_at: Optional[datetime] = None

    @property
    def symptom_ids(self) -> frozenset[int]:
        return frozenset(s.id for s in self.symptoms)


@dataclass(frozen=True)
class BreedProfile:
    min_temp_adult: float
    max_temp_adult: float
    min_temp_young: float
    max_temp_young: float
    id: Optional[int] = None
    name: str = ""

    def band(self, category: Category) -> tuple[float, float]:
        if Category(category) == Category.ADULT:
            return self.min_temp_adult, self.max_temp_adult
        return self.min_temp_young, self.max_temp_young


@dataclass(frozen=True)
class RiskAnalysis:
    temperature_score: int = 0
    symptom_score: int = 0
    progression_score: int = 0
    total_score: int = 0
    risk_level: RiskLevel = RiskLevel.LOW
    details: tuple[tuple[str, str], ...] = field(default=(), compare=False)  # (symptom, treatment)

    @property
    def color(self) -> str:
        return risk_color(self.risk_level)


def _clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def _ordering_key(obs: Observation):
    # recorded_at before id: ids are not guaranteed to follow wall-clock order
    stamp = obs.recorded_at.replace(tzinfo=None) if obs.recorded_at else datetime.min
    return (obs.date, stamp, obs.id)


def newest_first(observations: Iterable[Observation]) -> list[Observation]:
    return sorted(observations, key=_ordering_key, reverse=True)


def daily_sessions(observations: Iterable[Observation]) -> list[Observation]:
    """One session per day (the newest one recorded that day), newest day first."""
    sessions: list[Observation] = []
    seen: set[date] = set()
    for obs in newest_first(observations):
        if obs.date in seen:
            continue
        seen.add(obs.date)
        sessions.append(obs)
    return sessions


def temperature_deviation(temperature: float, breed: BreedProfile, category: Category) -> float:
    lo, hi = breed.band(category)
    # rounding keeps 40.5 - 39.5 from landing just under a threshold
    return round(max(temperature - hi, lo - temperature, 0.0), 6)


def classify(total: float) -> RiskLevel:
    if total >= 71:
        return RiskLevel.HIGH
    if total >= 31:
        return RiskLevel.MODERATE
    return RiskLevel.LOW


def risk_color(level: RiskLevel) -> str:
    return RISK_COLORS[RiskLevel(level)]


def temperature_score(latest: Observation, breed: BreedProfile, category: Category) -> int:
    d = temperature_deviation(latest.temperature, breed, category)
    if d >= 1.5:
        return 25
    if d >= 1.0:
        return 20
    if d >= 0.5:
        return 15
    return 0


def symptom_score(latest: Observation) -> int:
    raw = sum(s.risk_weight * 10 for s in latest.symptoms)
    return int(_clamp(raw, 0, MAX_SYMPTOM_SCORE))


def _step_points(change: float) -> int:
    return min(10, math.floor(round(change / 0.5, 6)) * 5)


def progression_score(sessions: list[Observation], breed: BreedProfile, category: Category) -> int:
    """
    Score how the disease picture moves across consecutive monitored days.

    `sessions` holds one observation per day, newest first. The running
    total is signed while accumulating and clamped to [0, 25] only at the end.
    """
    new_count = 0
    persistent_count = 0
    improved_count = 0
    trend = 0

    deviations = [temperature_deviation(s.temperature, breed, category) for s in sessions]

    for i in range(len(sessions) - 1):
        current = sessions[i].symptom_ids
        previous = sessions[i + 1].symptom_ids

        new_count += len(current - previous)
        persistent_count += len(current & previous)
        improved_count += len(previous - current)

        change = deviations[i] - deviations[i + 1]
        if change > 0:
            trend += _step_points(change)
        elif change < 0:
            trend -= _step_points(-change)

    total = 0
    total += min(15, 5 * new_count)
    total += min(10, 3 * persistent_count)
    total -= min(10, 2 * improved_count)

    feverish_days = sum(1 for d in deviations if d >= 1.0)
    if feverish_days >= 2:
        total += 10
    if feverish_days >= 3:
        total += 5

    total += trend

    logger.debug(
        "progression new=%d persistent=%d improved=%d feverish_days=%d trend=%d raw=%d",
        new_count, persistent_count, improved_count, feverish_days, trend, total,
    )
    return int(_clamp(total, 0, MAX_PROGRESSION_SCORE))


def latest_symptom_details(observations: Iterable[Observation]) -> tuple[tuple[str, str], ...]:
    ordered = newest_first(observations)
    if not ordered:
        return ()
    return tuple((s.symptom, s.treatment_recommendation) for s in ordered[0].symptoms)


def analyze(observations: Iterable[Observation], breed: BreedProfile, category: Category) -> RiskAnalysis:
    """
    Explainable ASF risk scoring:
    - temperature: how far the newest reading sits outside the breed band
    - symptoms: weighted checklist of the newest session
    - progression: new/persistent/improved symptoms and fever trend across days
    """
    sessions = daily_sessions(observations)
    if not sessions:
        return RiskAnalysis()

    latest = sessions[0]
    temp = temperature_score(latest, breed, category)
    symptoms = symptom_score(latest)
    progression = progression_score(sessions, breed, category)
    total = int(min(MAX_TOTAL_SCORE, temp + symptoms + progression))
    level = classify(total)

    logger.debug(
        "risk scores temperature=%d symptom=%d progression=%d total=%d level=%s",
        temp, symptoms, progression, total, level.value,
    )

    return RiskAnalysis(
        temperature_score=temp,
        symptom_score=symptoms,
        progression_score=progression,
        total_score=total,
        risk_level=level,
        details=tuple((s.symptom, s.treatment_recommendation) for s in latest.symptoms),
    )
