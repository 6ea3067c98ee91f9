"""Elevate core library — goal tracking, evaluation and day rollover.

Public API re-exports for convenient imports:
    from elevate import Tracker, evaluate, level_of, ...
"""

# Workspace & settings
from elevate.workspace import (
    workspace_root,
    load_settings,
    get_timezone,
    today_str,
    now_ms,
    settings_path,
    hooks_config_path,
)

# Storage
from elevate.storage import (
    KeyValueStore,
    FileStore,
    MemoryStore,
    StorageError,
)

# Evaluation
from elevate.evaluator import (
    STREAK_THRESHOLD,
    task_ratio,
    completion_rate,
    compute_streak,
    weekly_progress,
    summarize,
    evaluate,
)

# Leveling
from elevate.leveling import (
    level_of,
    level_threshold,
    reached_target,
    day_end_bonus,
    award_xp,
)

# Tasks & history
from elevate.tasks import (
    validate_task,
    find_task,
    create_task,
    update_task,
    delete_task,
    record_focus_session,
    reset_tasks,
)
from elevate.history import build_day_log, append_day_log, recent_history

# State & rollover
from elevate.state import AppState, load_state, save_keys
from elevate.rollover import check_automatic_rollover, end_day
from elevate.tracker import Tracker

# Coach boundary
from elevate.coach import build_coach_context, coach_reply, greeting

# Models
from elevate.models import (
    Settings,
    Session,
    Task,
    DayStats,
    DayLog,
    UserProfile,
    AIConfig,
    Metrics,
    LevelInfo,
)
