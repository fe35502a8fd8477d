"""
Utility modules for Decision Intake.
"""

from decision_intake.utils.logger import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
