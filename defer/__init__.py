"""
Defer - a personal impulse-delay tracker.

Record an urge you want to postpone, wait out a cooling-off protocol,
check in daily, and record whether the final decision was intentional.
"""

__version__ = "0.3.0"
