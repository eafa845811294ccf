import logging
from datetime import date, datetime

import pandas as pd

logger = logging.getLogger(__name__)

DATE_COLUMNS = [
    "DateofBirth",
    "DLExpirationDate",
    "DOTExpirationDate",
    "LastDrugTest",
    "BackgroundCheck",
    "PUCFingerPrints",
    "MVRLastRan",
    "LastTrained",
]

REQUIRED_COLUMNS = ["DriverId", "driverName"] + DATE_COLUMNS

DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y")

EMPTY_FILE_MESSAGE = "The uploaded file is empty."


def parse_date(value):
    """Parse ``YYYY-MM-DD`` or ``MM/DD/YYYY``; anything else becomes None."""
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def validate_csv(path):
    try:
        # Keep the raw text so the exported table matches what was uploaded
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError as e:
        raise ValueError(EMPTY_FILE_MESSAGE) from e

    df.columns = [str(c).strip() for c in df.columns]

    duplicates = sorted({c for c in df.columns if list(df.columns).count(c) > 1})
    if duplicates:
        raise ValueError(f"Duplicate columns: {duplicates}")

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")

    blank_ids = df.index[df["DriverId"].str.strip() == ""]
    if len(blank_ids):
        rows = [int(i) + 1 for i in blank_ids]
        raise ValueError(f"DriverId is missing in row(s): {rows}")

    logger.debug("Validated %d driver rows", len(df))
    return df
