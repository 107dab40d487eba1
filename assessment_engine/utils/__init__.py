"""
Utility modules for the assessment validation engine.
"""

from .logging_utils import setup_logger, get_logger
from .data_validation import validate_dataframe, validate_document

__all__ = [
    "setup_logger",
    "get_logger",
    "validate_dataframe",
    "validate_document",
]
