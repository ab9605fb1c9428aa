import enum

class TtbField(enum.StrEnum):
    MAIN = "main_seconds"
    EXTRA = "extra_seconds"
    COMPLETIONIST = "completionist_seconds"

class CacheKind(enum.StrEnum):
    TTB = "ttb"
    TAGS = "tags"

class SchedulerState(enum.StrEnum):
    IDLE = "idle"
    SCANNING = "scanning"
    STOPPED = "stopped"

class CycleOutcome(enum.StrEnum):
    CACHED = "cached"
    FROM_BACKEND = "from_backend"
    FETCHED = "fetched"
    MISS = "miss"
    FAILED = "failed"
