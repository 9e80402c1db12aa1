from sqlalchemy import Column, Integer, Float, String, Date, DateTime, Boolean, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship
from .database import Base

class Breed(Base):
    __tablename__ = "breeds"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True)

    min_temp_adult = Column(Float, nullable=False)
    max_temp_adult = Column(Float, nullable=False)
    min_temp_young = Column(Float, nullable=False)
    max_temp_young = Column(Float, nullable=False)

class Pig(Base):
    __tablename__ = "pigs"
    __table_args__ = (
        CheckConstraint("category IN ('Adult', 'Young')", name="ck_pigs_category"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    age = Column(Integer, nullable=False)
    weight = Column(Float, nullable=False)
    category = Column(String, nullable=False)  # Adult | Young
    # no FK: a breed may be removed while its pigs stay on record
    breed_id = Column(Integer, nullable=False, index=True)
    image = Column(String, nullable=True)
    prone_level = Column(String, nullable=False, default="Low")  # Low | Moderate | High

    records = relationship("MonitoringRecord", back_populates="pig", cascade="all, delete-orphan")

class ChecklistItem(Base):
    __tablename__ = "checklist_items"
    __table_args__ = (
        CheckConstraint("risk_weight BETWEEN 1 AND 5", name="ck_checklist_risk_weight"),
    )

    id = Column(Integer, primary_key=True)
    symptom = Column(String, nullable=False)
    risk_weight = Column(Integer, nullable=False)
    treatment_recommendation = Column(String, nullable=False)

class MonitoringRecord(Base):
    __tablename__ = "monitoring_records"

    id = Column(Integer, primary_key=True)
    pig_id = Column(Integer, ForeignKey("pigs.id", ondelete="CASCADE"), nullable=False, index=True)

    date = Column(Date, nullable=False)  # monitoring day, canonical time zone
    temperature = Column(Float, nullable=False)
    notes = Column(String, nullable=True)

    recorded_at = Column(DateTime, nullable=False, index=True)  # wall clock, canonical time zone

    pig = relationship("Pig", back_populates="records")
    checklist = relationship("ChecklistRecord", back_populates="record", cascade="all, delete-orphan")

Index("idx_monitoring_pig_date", MonitoringRecord.pig_id, MonitoringRecord.date)

class ChecklistRecord(Base):
    __tablename__ = "checklist_records"

    id = Column(Integer, primary_key=True)
    monitoring_id = Column(Integer, ForeignKey("monitoring_records.id", ondelete="CASCADE"), nullable=False)
    checklist_id = Column(Integer, ForeignKey("checklist_items.id", ondelete="CASCADE"), nullable=False)
    checked = Column(Boolean, nullable=False, default=False)

    record = relationship("MonitoringRecord", back_populates="checklist")
    item = relationship("ChecklistItem")

Index("idx_checklist_records", ChecklistRecord.monitoring_id, ChecklistRecord.checklist_id)

class Setting(Base):
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True)
    monitoring_start_time = Column(String, nullable=False, default="08:00")
    reminder_notifications = Column(Boolean, nullable=False, default=True)
