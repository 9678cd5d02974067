import os

# Database Configuration
# Uses default credentials for local Docker Compose setup
DB_URL = os.getenv("DATABASE_URL", "postgres://user:password@db:5432/kitchen_db")

# Application Metadata
PROJECT_NAME = "Smart Kitchen Manager"
VERSION = "1.0.0"

# Authentication
JWT_SECRET = os.getenv("JWT_SECRET", "change-this-kitchen-secret")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7))

# Rate Limiting
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
RATE_LIMIT_DEFAULT = os.getenv("RATE_LIMIT_DEFAULT", "100/15minutes")
# memory:// keeps counters per process; point at redis:// to share them across instances
RATE_LIMIT_STORAGE_URI = os.getenv("RATE_LIMIT_STORAGE_URI", "memory://")
# Failed logins per client IP before login is locked for the window
LOGIN_MAX_FAILURES = int(os.getenv("LOGIN_MAX_FAILURES", 5))
LOGIN_LOCKOUT_MINUTES = int(os.getenv("LOGIN_LOCKOUT_MINUTES", 30))

# Reminder Scheduler Configuration (intervals in seconds)
SCHEDULER_ENABLED = os.getenv("SCHEDULER_ENABLED", "false").lower() == "true"
SCHEDULER_INITIAL_DELAY = int(os.getenv("SCHEDULER_INITIAL_DELAY", 5))
EXPIRY_SWEEP_INTERVAL = int(os.getenv("EXPIRY_SWEEP_INTERVAL", 60 * 60))
LOW_STOCK_SWEEP_INTERVAL = int(os.getenv("LOW_STOCK_SWEEP_INTERVAL", 6 * 60 * 60))
USAGE_SWEEP_INTERVAL = int(os.getenv("USAGE_SWEEP_INTERVAL", 6 * 60 * 60))
SCHEDULED_REMINDER_INTERVAL = int(os.getenv("SCHEDULED_REMINDER_INTERVAL", 5 * 60))

# Reminder derivation windows (days)
EXPIRY_WINDOW_DAYS = int(os.getenv("EXPIRY_WINDOW_DAYS", 3))
USAGE_WINDOW_DAYS = int(os.getenv("USAGE_WINDOW_DAYS", 30))
RESTOCK_HORIZON_DAYS = int(os.getenv("RESTOCK_HORIZON_DAYS", 7))
