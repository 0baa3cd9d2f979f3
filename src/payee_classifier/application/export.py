"""Merge classification results back onto the original rows for export.

The merge is keyed by `row_index`. A result whose index is out of range (or
already claimed) is matched to a remaining row by normalized payee name. Every
original row produces exactly one record, and no result is used twice.

Usage example:
    records = export_results(batch_result)
    table_io.write_csv(records_to_frame(records), Path("data/out/classified.csv"))
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

from ..domain.classification import (
    BatchProcessingResult,
    CellValue,
    Classification,
    PayeeClassification,
    ProcessingTier,
    Row,
)
from ..domain.normalization import name_match_key
from ..domain.similarity import SimilarityScores
from ..observability import get_logger

logger = get_logger("payee_classifier.export")

type ExportRecord = dict[str, CellValue]

PAYEE_NAME_COLUMN = "Payee_Name"
CANDIDATE_NAME_COLUMNS = ("Payee_Name", "payee_name", "Payee", "Name", "Vendor_Name")

ALIGNED_STATUS = "Perfect 1:1 Match"
NAME_MATCHED_STATUS = "Matched by Name"
MISSING_STATUS = "ERROR: Missing Result"

CLASSIFICATION_COLUMNS = (
    "AI_Classification",
    "AI_Confidence_%",
    "AI_Processing_Tier",
    "AI_Reasoning",
    "AI_Processing_Method",
    "Keyword_Exclusion",
    "Matched_Keywords",
    "Keyword_Confidence_%",
    "Keyword_Reasoning",
    "Matching_Rules",
    "Similarity_Scores",
    "Classification_Timestamp",
    "Processing_Row_Index",
    "Data_Alignment_Status",
)


def format_similarity_scores(scores: SimilarityScores | None) -> str:
    if scores is None:
        return ""
    parts = (
        ("Levenshtein", scores.levenshtein),
        ("Jaro-Winkler", scores.jaro_winkler),
        ("Dice", scores.dice),
        ("Token Sort", scores.token_sort),
        ("Combined", scores.combined),
    )
    return " | ".join(f"{label}: {value:.1f}" for label, value in parts)


def _classification_columns(
    item: PayeeClassification, row_index: int, status: str
) -> ExportRecord:
    result = item.result
    exclusion = result.keyword_exclusion
    return {
        "AI_Classification": result.classification.value,
        "AI_Confidence_%": result.confidence,
        "AI_Processing_Tier": result.processing_tier.value,
        "AI_Reasoning": result.reasoning,
        "AI_Processing_Method": result.processing_method,
        "Keyword_Exclusion": "Yes" if exclusion.is_excluded else "No",
        "Matched_Keywords": "; ".join(exclusion.matched_keywords),
        "Keyword_Confidence_%": round(exclusion.confidence, 1),
        "Keyword_Reasoning": exclusion.reasoning,
        "Matching_Rules": "; ".join(result.matching_rules),
        "Similarity_Scores": format_similarity_scores(result.similarity_scores),
        "Classification_Timestamp": item.timestamp.isoformat(),
        "Processing_Row_Index": row_index,
        "Data_Alignment_Status": status,
    }


def _missing_columns(row_index: int) -> ExportRecord:
    return {
        "AI_Classification": Classification.INDIVIDUAL.value,
        "AI_Confidence_%": 0,
        "AI_Processing_Tier": "Missing",
        "AI_Reasoning": "ERROR: Result missing for this row",
        "AI_Processing_Method": "Error",
        "Keyword_Exclusion": "No",
        "Matched_Keywords": "",
        "Keyword_Confidence_%": 0,
        "Keyword_Reasoning": "No result found",
        "Matching_Rules": "",
        "Similarity_Scores": "",
        "Classification_Timestamp": datetime.now(UTC).isoformat(),
        "Processing_Row_Index": row_index,
        "Data_Alignment_Status": MISSING_STATUS,
    }


def find_result_by_name(
    name: str,
    candidates: Sequence[PayeeClassification],
    preferred_index: int | None = None,
) -> PayeeClassification | None:
    """Find a result whose payee name matches `name`, ignoring case, punctuation and spacing.

    When several candidates match, the one whose `row_index` equals
    `preferred_index` wins; otherwise the first match is returned.
    """
    key = name_match_key(name)
    if not key:
        return None
    matches = [item for item in candidates if name_match_key(item.payee_name) == key]
    if not matches:
        return None
    if preferred_index is not None:
        for item in matches:
            if item.row_index == preferred_index:
                return item
    return matches[0]


def _row_payee_name(row: Row, payee_column: str | None) -> str | None:
    columns = (payee_column,) if payee_column else CANDIDATE_NAME_COLUMNS
    for column in columns:
        value = row.get(column)
        if value is not None and str(value).strip():
            return str(value)
    return None


def _results_only(results: Sequence[PayeeClassification]) -> list[ExportRecord]:
    records: list[ExportRecord] = []
    for position, item in enumerate(results):
        record: ExportRecord = {PAYEE_NAME_COLUMN: item.payee_name}
        record.update(_classification_columns(item, position, ALIGNED_STATUS))
        records.append(record)
    return records


def export_results(
    batch_result: BatchProcessingResult,
    include_all_columns: bool = True,
    *,
    payee_column: str | None = None,
) -> list[ExportRecord]:
    """Return one export record per original row, in original row order.

    Args:
        batch_result: Results to export, with the rows they were classified from.
        include_all_columns: Keep every original column; when False only
            `Payee_Name` and the classification columns are emitted.
        payee_column: Column holding the payee name, used for name-based
            fallback matching. Common names are tried when omitted.
    """
    rows = batch_result.original_file_data
    results = batch_result.results
    if not rows:
        logger.warning("No original rows available; exporting results only")
        return _results_only(results)

    assigned: dict[int, PayeeClassification] = {}
    unassigned: list[PayeeClassification] = []
    for item in results:
        if 0 <= item.row_index < len(rows) and item.row_index not in assigned:
            assigned[item.row_index] = item
        else:
            unassigned.append(item)

    records: list[ExportRecord] = []
    missing = 0
    for index, row in enumerate(rows):
        item = assigned.get(index)
        status = ALIGNED_STATUS
        row_name = _row_payee_name(row, payee_column)
        if item is None and row_name is not None:
            item = find_result_by_name(row_name, unassigned, preferred_index=index)
            if item is not None:
                unassigned.remove(item)
                status = NAME_MATCHED_STATUS

        record: ExportRecord = (
            dict(row)
            if include_all_columns
            else {PAYEE_NAME_COLUMN: row_name if row_name is not None else _name_of(item)}
        )
        if item is None:
            missing += 1
            logger.error("No result found for row %d", index)
            record.update(_missing_columns(index))
        else:
            record.update(_classification_columns(item, index, status))
        records.append(record)

    if unassigned:
        logger.warning("%d results could not be matched to any row", len(unassigned))
    if missing:
        logger.warning("%d of %d rows exported without a result", missing, len(rows))
    return records


def _name_of(item: PayeeClassification | None) -> str:
    return "" if item is None else item.payee_name


@dataclass(frozen=True)
class BatchStatistics:
    total: int
    business_count: int
    individual_count: int
    excluded_count: int
    failed_count: int
    average_confidence: float
    tier_counts: dict[str, int] = field(default_factory=dict)


def summarize_results(results: Sequence[PayeeClassification]) -> BatchStatistics:
    """Count classifications and tiers; failed rows are left out of the average confidence."""
    tiers = Counter(item.result.processing_tier.value for item in results)
    failed = tiers.get(ProcessingTier.FAILED.value, 0)
    succeeded = [
        item.result for item in results if item.result.processing_tier is not ProcessingTier.FAILED
    ]
    average = (
        sum(result.confidence for result in succeeded) / len(succeeded) if succeeded else 0.0
    )
    return BatchStatistics(
        total=len(results),
        business_count=sum(1 for r in succeeded if r.classification is Classification.BUSINESS),
        individual_count=sum(
            1 for r in succeeded if r.classification is Classification.INDIVIDUAL
        ),
        excluded_count=tiers.get(ProcessingTier.EXCLUDED.value, 0),
        failed_count=failed,
        average_confidence=round(average, 1),
        tier_counts=dict(tiers),
    )
