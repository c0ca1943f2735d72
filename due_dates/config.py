# -*- coding: utf-8 -*-
"""Settings read from the environment."""
import os

# Course time zone used to turn lab meeting wall-clock times into instants
DEFAULT_TIME_ZONE = os.getenv("DUE_DATES_TIME_ZONE", "America/New_York")

# Each late token buys this many hours
LATE_TOKEN_HOURS = int(os.getenv("LATE_TOKEN_HOURS", "24"))

# Due date service URL - used by the HTTP wrapper
DUE_DATE_SERVICE_URL = os.getenv("DUE_DATE_SERVICE_URL", "http://localhost:8004")

# Timeout for calls to the due date service (in seconds)
DUE_DATE_SERVICE_TIMEOUT = float(os.getenv("DUE_DATE_SERVICE_TIMEOUT", "30.0"))

LOG_LEVEL = os.getenv("DUE_DATES_LOG_LEVEL", "INFO")
