"""Ordered per-question response ledger."""
from __future__ import annotations

from typing import Any, Iterator, List, Optional

from engines.migration import upgrade_responses
from schemas import Response


class ResponseLedger:
    """Insertion-ordered responses, at most one per question id."""

    def __init__(self, responses: Optional[List[Response]] = None) -> None:
        self._responses: List[Response] = []
        for response in responses or []:
            self.upsert(response)

    def upsert(self, response: Response) -> int:
        """Store ``response``; an earlier answer is replaced in its original slot.

        Returns the ledger index the response occupies.
        """

        if response.question_id is None:
            # records restored without a question id cannot be matched, keep each one
            self._responses.append(response)
            return len(self._responses) - 1
        for index, existing in enumerate(self._responses):
            if existing.question_id == response.question_id:
                self._responses[index] = response
                return index
        self._responses.append(response)
        return len(self._responses) - 1

    def all(self) -> List[Response]:
        return list(self._responses)

    def find_by_question(self, question_id: Optional[str]) -> Optional[Response]:
        if question_id is None:
            return None
        for response in self._responses:
            if response.question_id == question_id:
                return response
        return None

    def clear(self) -> None:
        self._responses = []

    def to_records(self) -> List[dict]:
        return [response.to_record() for response in self._responses]

    @staticmethod
    def upgrade(raw_responses: Any) -> List[Response]:
        return upgrade_responses(raw_responses)

    @classmethod
    def from_raw(cls, raw_responses: Any) -> "ResponseLedger":
        return cls(upgrade_responses(raw_responses))

    def __len__(self) -> int:
        return len(self._responses)

    def __iter__(self) -> Iterator[Response]:
        return iter(list(self._responses))
