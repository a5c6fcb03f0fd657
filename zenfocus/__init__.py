"""ZenFocus core library: daily focus partitions, drop targets, categories.

Public API re-exports for convenient imports:
    from zenfocus import DailyFocusCoordinator, resolve_drop_index, ...
"""

# Workspace & paths
from zenfocus.workspace import (
    workspace_root,
    get_user_timezone,
    now_local,
    load_settings,
    settings_path,
    state_path,
    store_path,
    logs_dir,
)

# Errors
from zenfocus.errors import StoreError, ValidationError

# Models
from zenfocus.models import (
    TODAY,
    SOMEDAY,
    PARTITIONS,
    Task,
    Category,
    FocusSnapshot,
    FocusSession,
    Settings,
)

# Config & persistence
from zenfocus.config import (
    LAST_DAILY_FOCUS_RESET_DATE,
    LAST_PLAN_DATE,
    ConfigStore,
    JsonConfigStore,
    MemoryConfigStore,
)
from zenfocus.store import (
    TODAY_OPEN,
    SOMEDAY_OPEN,
    COMPLETED,
    PersistentStore,
    MemoryStore,
    YamlStore,
)
from zenfocus.dispatch import BackgroundDispatcher, InlineDispatcher

# Partitions & coordination
from zenfocus.partition import OrderedPartitionSet
from zenfocus.coordinator import DailyFocusCoordinator, open_coordinator
from zenfocus.drop import DropPlan, plan_drop, perform_drop, resolve_drop_index

# Categories
from zenfocus.categories import CategoryTree, PREDEFINED_COLORS, UNCATEGORIZED
from zenfocus.suggestions import (
    CategorySuggestionEngine,
    Suggestions,
    extract_category_query,
)
from zenfocus.tasks import MAX_TITLE_LENGTH, build_task, parse_task_input, validate_title

# Sessions, events & history
from zenfocus.events import EventBus, TASK_COMPLETED, TASK_PAUSE_STATE_CHANGED
from zenfocus.focus import FocusTracker
from zenfocus.history import (
    TIME_PERIODS,
    period_range,
    category_time_breakdown,
    group_completed_by_day,
    group_completed_by_month,
    today_metrics,
)
from zenfocus.log import setup_logging
