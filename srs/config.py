from django.conf import settings

# SM-2
MIN_EASE_FACTOR = 1.3
DEFAULT_EASE_FACTOR = 2.5
INITIAL_INTERVAL = 1   # days, first success (and every lapse)
SECOND_INTERVAL = 6    # days, second consecutive success
EASE_DECIMALS = 4
QUALITY = {
    1: 0,  # Again -> complete blackout
    2: 2,  # Hard  -> correct with serious difficulty
    3: 4,  # Good  -> correct with some hesitation
    4: 5,  # Easy  -> perfect response
}

# Rewards
XP_BASE = 5
MASTERY_REPETITIONS = 5
MASTERY_INTERVAL_DAYS = 21
LEVEL_THRESHOLDS = (
    (1, 0, "Novice Reader"),
    (2, 100, "Apprentice"),
    (3, 300, "Page Turner"),
    (4, 600, "Bookworm"),
    (5, 1000, "Avid Reader"),
    (6, 1500, "Literature Lover"),
    (7, 2500, "Scholar"),
    (8, 4000, "Bibliophile"),
    (9, 6000, "Sage"),
    (10, 10000, "Master Reader"),
)
XP_PER_LEVEL_AFTER_10 = 5000
GRAND_MASTER_TITLE = "Grand Master"

# Due-set
DEFAULT_DAILY_LIMIT = 50
DAILY_LIMIT_MIN = 1
DAILY_LIMIT_MAX = 500
MIN_LIMIT = 1
MAX_LIMIT = 200

# Statistics
DEFAULT_HISTORY_DAYS = 30
MIN_HISTORY_DAYS = 1
MAX_HISTORY_DAYS = 365

_OVERRIDABLE = {
    "DEFAULT_DAILY_LIMIT": DEFAULT_DAILY_LIMIT,
    "MAX_LIMIT": MAX_LIMIT,
    "XP_BASE": XP_BASE,
    "DEFAULT_HISTORY_DAYS": DEFAULT_HISTORY_DAYS,
}


def get_setting(name):
    """Return ``settings.SRS[name]`` when set, else the module default."""
    if name not in _OVERRIDABLE:
        raise KeyError(name)
    overrides = getattr(settings, "SRS", None) or {}
    return overrides.get(name, _OVERRIDABLE[name])
