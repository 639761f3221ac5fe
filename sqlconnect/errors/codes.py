from enum import Enum


class ErrorCode(str, Enum):
    # --- Registry / templates ---
    UNKNOWN_STATEMENT = "UNKNOWN_STATEMENT"
    INSUFFICIENT_PARAMETERS = "INSUFFICIENT_PARAMETERS"

    # --- Stored procedures ---
    PROCEDURE_NOT_FOUND = "PROCEDURE_NOT_FOUND"
    PARAMETER_COUNT_MISMATCH = "PARAMETER_COUNT_MISMATCH"

    # --- Driver / normalizer ---
    DRIVER_ERROR = "DRIVER_ERROR"
    LOST_READER = "LOST_READER"
    ROW_SHAPE_MISMATCH = "ROW_SHAPE_MISMATCH"

    # --- Dispatch / config ---
    MISSING_CONNECTION_STRING = "MISSING_CONNECTION_STRING"
    UNKNOWN_DATABASE_KIND = "UNKNOWN_DATABASE_KIND"
    UNKNOWN_OUTPUT_KIND = "UNKNOWN_OUTPUT_KIND"
