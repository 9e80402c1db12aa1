from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from datetime import date, datetime
from typing import List, Optional, Literal

from .scheduler import parse_start_time

Category = Literal["Adult", "Young"]
RiskLevel = Literal["Low", "Moderate", "High"]

class BreedIn(BaseModel):
    name: str = Field(..., min_length=1)
    min_temp_adult: float = Field(..., ge=30, le=45)
    max_temp_adult: float = Field(..., ge=30, le=45)
    min_temp_young: float = Field(..., ge=30, le=45)
    max_temp_young: float = Field(..., ge=30, le=45)

    @model_validator(mode="after")
    def check_bands(self):
        if self.min_temp_adult >= self.max_temp_adult:
            raise ValueError("min_temp_adult must be lower than max_temp_adult")
        if self.min_temp_young >= self.max_temp_young:
            raise ValueError("min_temp_young must be lower than max_temp_young")
        return self

class BreedOut(BreedIn):
    model_config = ConfigDict(from_attributes=True)

    id: int

class ChecklistItemIn(BaseModel):
    symptom: str = Field(..., min_length=1)
    risk_weight: int = Field(..., ge=1, le=5)
    treatment_recommendation: str = Field(..., min_length=10)

class ChecklistItemOut(ChecklistItemIn):
    model_config = ConfigDict(from_attributes=True)

    id: int

class PigIn(BaseModel):
    name: str = Field(..., min_length=1)
    age: int = Field(..., ge=0)
    weight: float = Field(..., gt=0)
    category: Category
    breed_id: int
    image: Optional[str] = None
    prone_level: RiskLevel = "Low"

class PigOut(PigIn):
    model_config = ConfigDict(from_attributes=True)

    id: int

class ObservationIn(BaseModel):
    temperature: float = Field(..., ge=30, le=45)
    checklist: dict[int, bool] = Field(default_factory=dict)  # checklist item id -> checked
    notes: Optional[str] = None

class SymptomOut(BaseModel):
    id: int
    symptom: str
    risk_weight: int
    treatment_recommendation: str

class ObservationOut(BaseModel):
    id: int
    pig_id: int
    date: date
    temperature: float
    notes: Optional[str] = None
    recorded_at: datetime
    symptoms: List[SymptomOut]

class SymptomDetail(BaseModel):
    symptom: str
    treatment: str

class RiskOut(BaseModel):
    pig_id: int
    temperature_score: int
    symptom_score: int
    progression_score: int
    total_score: int
    risk_level: RiskLevel
    color: str
    breed_missing: bool = False

class TimingOut(BaseModel):
    pig_id: int
    can_monitor: bool
    state: str
    next_monitoring_time: str
    time_remaining_seconds: Optional[int] = None
    time_remaining_text: Optional[str] = None
    last_monitored_time: Optional[str] = None

class HistoryPoint(BaseModel):
    date: date
    label: str  # Mon, Tue, ...
    temperature: Optional[float] = None
    abnormal: bool = False
    symptom_count: int = 0

class ReportOut(BaseModel):
    pig_id: int
    risk: RiskOut
    latest_temperature: Optional[float] = None
    symptom_details: List[SymptomDetail]
    symptoms_count: int = 0
    history: List[HistoryPoint]
    has_temperature_data: bool

class DashboardPig(BaseModel):
    id: int
    name: str
    risk_level: RiskLevel
    timing: TimingOut

class DashboardOut(BaseModel):
    date: date
    total_pigs: int
    monitored_count: int
    not_monitored_count: int
    alerts_count: int
    pigs: List[DashboardPig]

class RiskAlertOut(BaseModel):
    type: Literal["high-risk", "moderate-risk"]
    title: str
    body: str
    pig_names: List[str]

class MonitoringTimeIn(BaseModel):
    monitoring_start_time: str

    @field_validator("monitoring_start_time")
    def validate_hhmm(cls, v):
        parse_start_time(v)
        return v

class MonitoringTimeOut(MonitoringTimeIn):
    timezone: str
