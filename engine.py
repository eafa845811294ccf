import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, Optional, Tuple

from validator import parse_date

logger = logging.getLogger(__name__)

YEAR_DAYS = 365.25
HALF_YEAR_DAYS = YEAR_DAYS / 2


@dataclass(frozen=True)
class DriverRecord:
    driver_id: str
    driver_name: str = ""
    date_of_birth: Optional[date] = None
    dl_expiration_date: Optional[date] = None
    dot_expiration_date: Optional[date] = None
    last_drug_test: Optional[date] = None
    background_check: Optional[date] = None
    puc_fingerprints: Optional[date] = None
    mvr_last_ran: Optional[date] = None
    last_trained: Optional[date] = None

    @classmethod
    def from_row(cls, row) -> "DriverRecord":
        return cls(
            driver_id=str(row["DriverId"]).strip(),
            driver_name=str(row["driverName"]).strip(),
            date_of_birth=parse_date(row["DateofBirth"]),
            dl_expiration_date=parse_date(row["DLExpirationDate"]),
            dot_expiration_date=parse_date(row["DOTExpirationDate"]),
            last_drug_test=parse_date(row["LastDrugTest"]),
            background_check=parse_date(row["BackgroundCheck"]),
            puc_fingerprints=parse_date(row["PUCFingerPrints"]),
            mvr_last_ran=parse_date(row["MVRLastRan"]),
            last_trained=parse_date(row["LastTrained"]),
        )


@dataclass(frozen=True)
class EvaluationResult:
    is_pass: bool
    reasons: Tuple[str, ...] = ()

    @property
    def status(self) -> str:
        return "Pass" if self.is_pass else "Fail"

    @property
    def result_text(self) -> str:
        return "Pass" if self.is_pass else " ".join(self.reasons)


@dataclass(frozen=True)
class Rule:
    field: str
    message: str
    check: Callable[[date, date], bool]

    def passes(self, record: DriverRecord, today: date) -> bool:
        value = getattr(record, self.field)
        if value is None:
            return False
        return self.check(value, today)


def _days_since(value: date, today: date) -> int:
    return (today - value).days


def _older_than_21(value, today):
    return _days_since(value, today) / YEAR_DAYS > 21


def _in_future(value, today):
    return value > today


def _within_year(value, today):
    # value > today - 365.25 days
    return _days_since(value, today) < YEAR_DAYS


def _within_half_year(value, today):
    return _days_since(value, today) < HALF_YEAR_DAYS


RULES = (
    Rule("date_of_birth", "Age below 21;", _older_than_21),
    Rule("dl_expiration_date", "Driver's License expired;", _in_future),
    Rule("dot_expiration_date", "DOT expired;", _in_future),
    Rule("last_drug_test", "Drug test not within last year;", _within_year),
    Rule("background_check", "Background check not within last 6 months;", _within_half_year),
    Rule("puc_fingerprints", "PUC Fingerprints expired;", _in_future),
    Rule("mvr_last_ran", "MVR not run within last 6 months;", _within_half_year),
    Rule("last_trained", "Training not done within last 6 months;", _within_half_year),
)


def evaluate_driver(record: DriverRecord, today: date) -> EvaluationResult:
    """Check one driver against every rule; reasons follow rule order."""
    reasons = tuple(rule.message for rule in RULES if not rule.passes(record, today))
    return EvaluationResult(is_pass=not reasons, reasons=reasons)


def results_filename(today: date) -> str:
    return f"driver_results_{today.isoformat()}.csv"


def summarize(results, today: date) -> Dict:
    total = len(results)
    pass_count = sum(1 for r in results if r.is_pass)

    rule_failures = {rule.message: 0 for rule in RULES}
    for r in results:
        for reason in r.reasons:
            rule_failures[reason] += 1

    return {
        "total": total,
        "pass_count": pass_count,
        "fail_count": total - pass_count,
        "pass_rate": float(round(pass_count / total * 100, 2)) if total else 0.0,
        "as_of": today.isoformat(),
        "rule_failures": rule_failures,
    }


def evaluate(df, today: Optional[date] = None):
    """Annotate a validated driver table with ``Is_Pass`` and ``Result``.

    Returns the annotated copy (input rows and columns untouched, in the same
    order) together with the summary counts.
    """
    today = today or date.today()

    results = [evaluate_driver(DriverRecord.from_row(row), today) for _, row in df.iterrows()]

    out = df.copy()
    out["Is_Pass"] = [r.status for r in results]
    out["Result"] = [r.result_text for r in results]

    summary = summarize(results, today)
    logger.info(
        "Evaluated %d drivers as of %s: %d pass, %d fail",
        summary["total"],
        summary["as_of"],
        summary["pass_count"],
        summary["fail_count"],
    )
    return out, summary
