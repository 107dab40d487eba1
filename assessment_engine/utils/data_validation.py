"""
Data validation utilities for stage documents and metric tables.
"""

from typing import Any, List, Optional
import pandas as pd
from assessment_engine.utils.logging_utils import get_logger

logger = get_logger(__name__)


def validate_dataframe(
    df: pd.DataFrame,
    required_columns: Optional[List[str]] = None,
    min_rows: int = 1
) -> bool:
    """
    Validate a pandas DataFrame meets basic requirements.

    Args:
        df: DataFrame to validate
        required_columns: List of column names that must be present
        min_rows: Minimum number of rows required

    Returns:
        True if validation passes, raises ValueError otherwise

    Raises:
        ValueError: If validation fails
    """
    if not isinstance(df, pd.DataFrame):
        raise ValueError("Input must be a pandas DataFrame")

    if len(df) < min_rows:
        raise ValueError(f"DataFrame must have at least {min_rows} rows")

    if required_columns:
        missing = set(required_columns) - set(df.columns)
        if missing:
            raise ValueError(f"Missing required columns: {missing}")

    logger.debug(f"DataFrame validation passed: {len(df)} rows, {len(df.columns)} columns")
    return True


def validate_document(document: Any) -> bool:
    """
    Check that a stage output document is something the extractor can walk.

    Stage documents come from an external generator, so anything other than a
    mapping or a list at the top level is treated as empty rather than an error.

    Returns:
        True if the document is a dict or list, False otherwise
    """
    if isinstance(document, (dict, list)):
        return True
    logger.debug(f"Stage document has unsupported top-level type: {type(document).__name__}")
    return False
