# File: const.py
"""Constants for taskcadence.

Centralizes defaults, persisted field names, weekday indices and safety
limits shared by the rule model, the engines and the helpers.
"""

import logging

# ------------------------------------------------------------------------------------------------
# General
# ------------------------------------------------------------------------------------------------

# Logger
LOGGER = logging.getLogger(__package__)

# Civil timezone the rules are authored in. Occurrences keep their wall-clock
# time in this zone regardless of where the evaluating process runs.
DEFAULT_TIME_ZONE_NAME = "America/Sao_Paulo"

# Locales
LOCALE_PT_BR = "pt-BR"
LOCALE_EN = "en"
DEFAULT_LOCALE = LOCALE_PT_BR

# ------------------------------------------------------------------------------------------------
# Persisted rule shape (camelCase, mirrors the task record field)
# ------------------------------------------------------------------------------------------------

DATA_RULE_TYPE = "type"
DATA_RULE_INTERVAL = "interval"
DATA_RULE_DAYS_OF_WEEK = "daysOfWeek"
DATA_RULE_DAY_OF_MONTH = "dayOfMonth"
DATA_RULE_END_TYPE = "endType"
DATA_RULE_END_DATE = "endDate"
DATA_RULE_END_COUNT = "endCount"

# ------------------------------------------------------------------------------------------------
# Persisted occurrence completion shape
# ------------------------------------------------------------------------------------------------

DATA_COMPLETION_TASK_ID = "taskId"
DATA_COMPLETION_DATE = "date"
DATA_COMPLETION_IS_COMPLETED = "isCompleted"
DATA_COMPLETION_COMPLETED_AT = "completedAt"

# ------------------------------------------------------------------------------------------------
# Defaults and bounds
# ------------------------------------------------------------------------------------------------

DEFAULT_INTERVAL = 1
DEFAULT_DAY_OF_MONTH = 1
MIN_DAY_OF_MONTH = 1
MAX_DAY_OF_MONTH = 31
MIN_END_COUNT = 1

# Weekdays use 0 = Sunday ... 6 = Saturday
SUNDAY = 0
SATURDAY = 6
DAYS_PER_WEEK = 7
MONTHS_PER_YEAR = 12

# Safety limit for date calculations
MAX_DATE_CALCULATION_ITERATIONS = 1000

# Default ceiling for range queries
DEFAULT_OCCURRENCE_LIMIT = 100

# ------------------------------------------------------------------------------------------------
# Occurrence instances
# ------------------------------------------------------------------------------------------------

# Materialized occurrence ids look like "<task_id>_recurring_<epoch millis>"
RECURRING_INSTANCE_SEPARATOR = "_recurring_"

# ------------------------------------------------------------------------------------------------
# RFC 5545 export
# ------------------------------------------------------------------------------------------------

RRULE_UNTIL_FORMAT = "%Y%m%dT%H%M%SZ"
