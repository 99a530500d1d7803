"""
Data models for the record-organization survey.

This module defines lightweight data classes for a submitted answer and a stored vote counter,
plus the aggregation that turns stored counters into the per-question results served by the API.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Any, Iterable

# Option id synthesised into every aggregate; cannot be voted for.
TOTAL_KEY = "total"

ANSWER_FIELDS = ("questionId", "selectedOption")
MISSING_FIELDS_MESSAGE = "Missing required fields: questionId and selectedOption are required"


class SubmissionError(ValueError):
    """Raised when a submitted answer does not match the submission schema."""


def _is_filled(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


@dataclass(frozen=True)
class SurveyAnswer:
    """
    A single answer posted by the frontend.

    Attributes:
        questionId: Id of the question being answered (e.g. 'q1').
        selectedOption: Id of the chosen option (e.g. 'q1_b').
    """

    questionId: str
    selectedOption: str

    @classmethod
    def from_body(cls, body: Any) -> "SurveyAnswer":
        """
        Validate a decoded JSON body against the submission schema.

        Args:
            body: The decoded request body.
        Returns:
            The parsed answer.
        Raises:
            SubmissionError: If a field is missing, blank, not a string, unknown, or reserved.
        """
        if not isinstance(body, dict):
            raise SubmissionError(MISSING_FIELDS_MESSAGE)

        unknown = sorted(k for k in body if k not in ANSWER_FIELDS)
        if unknown:
            raise SubmissionError(f"Unexpected fields: {', '.join(unknown)}")

        question_id = body.get("questionId")
        selected = body.get("selectedOption")
        if not (_is_filled(question_id) and _is_filled(selected)):
            raise SubmissionError(MISSING_FIELDS_MESSAGE)

        # Ids are keys; stored the same way the results lookup strips them
        question_id, selected = question_id.strip(), selected.strip()

        if selected == TOTAL_KEY:
            raise SubmissionError(f"'{TOTAL_KEY}' is not a valid option id")

        return cls(questionId=question_id, selectedOption=selected)


@dataclass(frozen=True)
class VoteRecord:
    """
    A stored counter for one option of one question.

    Attributes:
        questionId: Partition key of the record.
        optionId: Sort key of the record (stored as the 'response' attribute).
        count: Number of votes recorded for the option.
    """

    questionId: str
    optionId: str
    count: int

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "VoteRecord":
        """Build a record from a DynamoDB item; numbers arrive as Decimal."""
        return cls(questionId=item["questionId"], optionId=item["response"], count=int(item.get("count", 0)))


def aggregate_votes(records: Iterable[VoteRecord]) -> Dict[str, Dict[str, int]]:
    """
    Group vote records by question and add a synthetic total.

    Questions without records never appear in the output.
    """
    results: Dict[str, Dict[str, int]] = {}
    for rec in records:
        tally = results.setdefault(rec.questionId, {TOTAL_KEY: 0})
        tally[rec.optionId] = rec.count
        tally[TOTAL_KEY] += rec.count
    return results
