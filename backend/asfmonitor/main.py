# backend/asfmonitor/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings, setup_logging
from .database import engine, Base, SessionLocal
from .models import ChecklistItem, Setting
from .routes import router

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="ASF Monitor", version="1.0.0")

origins = get_settings().cors_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

DEFAULT_CHECKLIST = [
    ("High fever", 5, "Isolate the pig immediately and report to the district veterinary officer."),
    ("Loss of appetite", 3, "Record feed intake twice daily and provide fresh water and electrolytes."),
    ("Skin reddening or cyanosis of ears", 4, "Isolate the pig and request a veterinary inspection."),
    ("Vomiting or bloody diarrhea", 4, "Isolate the pig, disinfect the pen and restrict visitor access."),
    ("Lethargy or reluctance to stand", 2, "Monitor closely and recheck temperature in the next window."),
]


# -----------------------------
# App lifecycle
# -----------------------------
@app.on_event("startup")
def startup():
    Base.metadata.create_all(bind=engine)

    # Seed settings and checklist if empty
    db = SessionLocal()
    try:
        if db.query(Setting).count() == 0:
            db.add(Setting(monitoring_start_time=get_settings().default_start_time))
            db.commit()
        if db.query(ChecklistItem).count() == 0:
            db.add_all([
                ChecklistItem(symptom=s, risk_weight=w, treatment_recommendation=t)
                for s, w, t in DEFAULT_CHECKLIST
            ])
            db.commit()
            logger.info("seeded %d default checklist items", len(DEFAULT_CHECKLIST))
    finally:
        db.close()


@app.get("/healthz")
def healthz():
    return {"ok": True}


# Main API
app.include_router(router)
