from .sessions import SessionMode, SessionRecord, SessionRecordCreate
from .timer import (
    TimerPhase,
    TimerSettings,
    TimerSettingsUpdate,
    TimerState,
    CycleLengthUpdate,
    TimerStartRequest
)
from .stopwatch import (
    StopwatchBlock,
    StopwatchBlockCreate,
    StopwatchDailyTotal
)
from .stats import (
    ActivityTier,
    DailyActivity,
    ActivityWindow,
    ActivitySnapshot,
    HeatmapCell,
    MonthLabel,
    HeatmapGrid,
    HeatmapResponse
)

__all__ = [
    'SessionMode',
    'SessionRecord',
    'SessionRecordCreate',
    'TimerPhase',
    'TimerSettings',
    'TimerSettingsUpdate',
    'TimerState',
    'CycleLengthUpdate',
    'TimerStartRequest',
    'StopwatchBlock',
    'StopwatchBlockCreate',
    'StopwatchDailyTotal',
    'ActivityTier',
    'DailyActivity',
    'ActivityWindow',
    'ActivitySnapshot',
    'HeatmapCell',
    'MonthLabel',
    'HeatmapGrid',
    'HeatmapResponse',
]
