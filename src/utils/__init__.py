"""
ClipShift Utilities Module

Utility functions and helpers:
- logger: Application logger and child-logger factory
"""
from .logger import logger, get_logger, setup_logger

__all__ = ['logger', 'get_logger', 'setup_logger']
