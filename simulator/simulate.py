import os
import time
import random
import requests
from dotenv import load_dotenv

load_dotenv()

API_BASE = os.getenv("API_BASE_URL", "http://localhost:8000").rstrip("/")
PIG_ID = int(os.getenv("PIG_ID", "1"))
INTERVAL = int(os.getenv("INTERVAL_SEC", "60"))
INCIDENT_MODE = os.getenv("INCIDENT_MODE", "1") == "1"

OBSERVATIONS_URL = f"{API_BASE}/api/v1/pigs/{PIG_ID}/observations"
TIMING_URL = f"{API_BASE}/api/v1/pigs/{PIG_ID}/timing"
CHECKLIST_URL = f"{API_BASE}/api/v1/checklist"

temp_base = 39.0

def clamp(x, lo, hi):
    return max(lo, min(hi, x))

checklist_ids = [item["id"] for item in requests.get(CHECKLIST_URL, timeout=10).json()]

t = 0
while True:
    try:
        timing = requests.get(TIMING_URL, timeout=10).json()
    except Exception as e:
        print("timing error:", e)
        time.sleep(INTERVAL)
        continue

    if not timing["can_monitor"]:
        print("waiting:", timing["state"], "next", timing["next_monitoring_time"], timing["time_remaining_text"])
        time.sleep(INTERVAL)
        continue

    t += 1

    # Scripted incident: fever climbs and symptoms accumulate session by session
    if INCIDENT_MODE:
        temp = temp_base + (t * 0.35) + random.uniform(-0.1, 0.1)
        checked = set(checklist_ids[: min(len(checklist_ids), t // 2)])
    else:
        temp = temp_base + random.uniform(-0.4, 0.4)
        checked = {i for i in checklist_ids if random.random() < 0.05}

    payload = {
        "temperature": round(clamp(temp, 36.0, 42.5), 1),
        "checklist": {str(i): i in checked for i in checklist_ids},
        "notes": "simulated",
    }

    try:
        r = requests.post(OBSERVATIONS_URL, json=payload, timeout=10)
        print("observation:", r.status_code, r.json())
        risk = requests.get(f"{API_BASE}/api/v1/pigs/{PIG_ID}/risk", timeout=10).json()
        print("risk:", risk["risk_level"], risk["total_score"])
    except Exception as e:
        print("observation error:", e)

    time.sleep(INTERVAL)
