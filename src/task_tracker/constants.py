STATE_DIR_NAME = ".task_tracker"
CONFIG_FILE = "config.yaml"
STORAGE_DIR = "storage"
STORAGE_SUFFIX = ".json"
TASKS_KEY = "tasks"
LOCK_SUFFIX = ".lock"
# Storage keys become file names, so they are restricted to a safe charset.
STORAGE_KEY_PATTERN = r"^[A-Za-z0-9_.-]+$"

WINDOWS_LOCK_BYTES = 4096

LOG_LEVEL_ENV = "TASK_TRACKER_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"

# Loose "x@y.z" shape check applied to share identifiers.
SHARE_IDENTIFIER_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"
