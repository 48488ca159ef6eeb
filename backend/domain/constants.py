"""
Domain constants used across services/routers.
"""

# Queue names (one arq queue per job family)
QUEUE_PAYOUTS = "payouts"
QUEUE_NOTIFICATIONS = "notifications"
QUEUE_RECONCILIATION = "reconciliation"
QUEUE_CLEANUP = "cleanup"

ALL_QUEUES = (QUEUE_PAYOUTS, QUEUE_NOTIFICATIONS, QUEUE_RECONCILIATION, QUEUE_CLEANUP)

# Notification types emitted by the payout worker
NOTIFY_PAYOUT_SUCCESS = "payout_success"
NOTIFY_PAYOUT_FAILED = "payout_failed"

SYSTEM_ACTOR = "system"

# Validation patterns shared by auth and profile endpoints
PHONE_PATTERN = r"^\+?[1-9]\d{1,14}$"

# Mongo collections
CHATS = "chats"
MESSAGES = "messages"
ACTIVITY_LOGS = "activity_logs"
FILE_METADATA = "file_metadata"
AUDIT_EVENTS = "audit_events"
PROJECTS = "projects"
