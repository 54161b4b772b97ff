import os

from dotenv import load_dotenv

load_dotenv()

# JSON file backing the persistent key/value store
STORE_PATH = os.getenv("PUNCH_STORE_PATH", "punch_store.json")
LOG_LEVEL = os.getenv("PUNCH_LOG_LEVEL", "INFO")

# clock-out hours below this are moved to the next day on overnight shifts
OVERNIGHT_CUTOFF_HOUR = int(os.getenv("OVERNIGHT_CUTOFF_HOUR", "12"))

PRESETS_KEY = "shiftPresets"
OVERRIDES_KEY = "individualShiftConfigs"
LEGACY_SHIFT_KEY = "shiftConfig"

DEFAULT_PRESETS = [
    {
        "id": 1,
        "name": "morning",
        "icon": "🌅",
        "startTime": "09:00",
        "endTime": "19:00",
        "workHours": 9,
        "breakHours": 1,
        "isNextDay": False,
        "isDefault": True
    },
    {
        "id": 2,
        "name": "night",
        "icon": "🌙",
        "startTime": "16:00",
        "endTime": "02:00",
        "workHours": 9,
        "breakHours": 1,
        "isNextDay": True,
        "isDefault": False
    },
    {
        "id": 3,
        "name": "day",
        "icon": "☀️",
        "startTime": "08:00",
        "endTime": "17:00",
        "workHours": 9,
        "breakHours": 1,
        "isNextDay": False,
        "isDefault": False
    }
]
