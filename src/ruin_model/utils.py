# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""Console helpers shared by the reporter and the command line driver."""

import math
from datetime import datetime

TIME_FORMAT = '%H:%M:%S'
CURRENCY = '£'


def log_time_elapsed(start_time, message="Time elapsed"):
    """Print time elapsed since start_time.

    Parameters:
    start_time (datetime): Start time
    message (str): Message to display
    """
    elapsed = datetime.now() - start_time
    print(f"{message}: {elapsed.total_seconds():.2f} seconds")


def format_money(value):
    """Format an amount with the currency sign and thousands separators."""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return "n/a"
    sign = "-" if value < 0 else ""
    return f"{sign}{CURRENCY}{abs(value):,.0f}"


def format_pct(value, places=2):
    """Format a decimal fraction as a percentage."""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return "n/a"
    return f"{value:.{places}%}"
