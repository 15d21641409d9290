"""Canonical logging field names for the audit pipeline.

Keeping names centralized prevents drift between the dispatcher, the recorder
and whatever later consumes the structured output.
"""

TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"
EVENT = "event"
THREAD = "thread"
EXCEPTION = "exception"
EXCEPTION_TYPE = "exception_type"

# Audited record fields.
RECORD_NAME = "record_name"
RECORD_ID = "record_id"
ACTION = "action"
CHANGED_FIELDS = "changed_fields"

# Audit write fields.
ENTRY_ID = "entry_id"
CHANGED_BY = "changed_by"
HANDLER = "handler"
ERROR_CODE = "error_code"
ERROR_CATEGORY = "error_category"
ERROR_RETRYABLE = "error_retryable"

# Event names.
AUDIT_RECORDED_EVENT = "audit_entry_recorded"
AUDIT_DROPPED_EVENT = "audit_entry_dropped"
HANDLER_FAILURE_EVENT = "audit_handler_failure"
CAPTURE_FAILURE_EVENT = "audit_capture_failure"

# Common process-level fields.
SERVICE = "service"
ENVIRONMENT = "environment"
