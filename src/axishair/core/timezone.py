"""Pin the process timezone to UTC.

Timestamps are stored as naive UTC and the dashboard compares them against a
naive UTC "now"; any other local timezone would shift week and month bounds.
"""

import os
import time

os.environ["TZ"] = "UTC"
if hasattr(time, "tzset"):  # Not available on Windows
    time.tzset()
