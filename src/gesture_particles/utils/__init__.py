"""Logging and performance utilities."""
from .logger import setup_logging, GestureLogger, log_timing
from .performance import PerformanceMonitor, Timer

__all__ = ["setup_logging", "GestureLogger", "log_timing", "PerformanceMonitor", "Timer"]
