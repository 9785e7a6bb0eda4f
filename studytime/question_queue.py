"""
Question Queue - per-course progress through generated study questions.

A course holds an ordered question list, the index of the next question to
send, and the ids already answered. Sending skips answered questions with a
bounded loop; values are immutable and every transition returns a new
CourseProgress.

Persisted shape (questions.json, keyed by course id):
    {
        "questions": [{"id": "q1", "question": "...", "expectedAnswer": "..."}],
        "currentQuestionIndex": 0,
        "answeredQuestions": ["q1"],
        "readyToSend": true
    }
"""

import json
import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import NamedTuple, Optional

from studytime import paths
from studytime.free_time_store import file_lock, write_json_atomic

logger = logging.getLogger(__name__)

ANOTHER_QUESTION_RE = re.compile(
    r"(another|more|next|another question|more questions|send.*question)", re.IGNORECASE
)


@dataclass(frozen=True)
class Question:
    id: str
    text: str
    expected_answer: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Question":
        return cls(
            id=str(data["id"]),
            text=data.get("question", ""),
            expected_answer=data.get("expectedAnswer", ""),
        )

    def to_dict(self) -> dict:
        return {"id": self.id, "question": self.text, "expectedAnswer": self.expected_answer}


@dataclass(frozen=True)
class CourseProgress:
    course_id: str
    questions: tuple[Question, ...] = ()
    current_index: int = 0
    answered: frozenset[str] = field(default_factory=frozenset)
    ready_to_send: bool = False

    @property
    def remaining(self) -> int:
        """Unanswered questions at or after current_index."""
        return sum(1 for q in self.questions[self.current_index :] if q.id not in self.answered)

    @property
    def is_complete(self) -> bool:
        return self.remaining == 0

    @classmethod
    def from_dict(cls, course_id: str, data: dict) -> "CourseProgress":
        return cls(
            course_id=course_id,
            questions=tuple(Question.from_dict(q) for q in data.get("questions", [])),
            current_index=int(data.get("currentQuestionIndex", 0)),
            answered=frozenset(str(a) for a in data.get("answeredQuestions", [])),
            ready_to_send=bool(data.get("readyToSend", False)),
        )

    def to_dict(self) -> dict:
        return {
            "questions": [q.to_dict() for q in self.questions],
            "currentQuestionIndex": self.current_index,
            "answeredQuestions": sorted(self.answered),
            "readyToSend": self.ready_to_send,
        }


def next_unanswered(
    progress: CourseProgress, max_steps: Optional[int] = None
) -> tuple[Optional[Question], int]:
    """
    Find the next question to send, skipping answered ones.

    Args:
        progress: Course state
        max_steps: Upper bound on questions inspected (defaults to the
            number of questions)

    Returns:
        (question, index) or (None, len(questions)) when nothing is left
    """
    limit = len(progress.questions) if max_steps is None else max_steps
    idx = max(progress.current_index, 0)
    steps = 0
    while idx < len(progress.questions) and steps < limit:
        question = progress.questions[idx]
        if question.id not in progress.answered:
            return question, idx
        idx += 1
        steps += 1
    return None, len(progress.questions)


def advance(progress: CourseProgress) -> tuple[Optional[Question], CourseProgress]:
    """
    Take the next unanswered question for sending.

    Returns:
        (question, updated progress with current_index past it). When the
        course is finished, (None, progress moved to the end).
    """
    question, idx = next_unanswered(progress)
    if question is None:
        return None, replace(progress, current_index=len(progress.questions), ready_to_send=False)
    return question, replace(progress, current_index=idx + 1, ready_to_send=False)


def pending_question(progress: CourseProgress) -> Optional[Question]:
    """The last question sent, if it is still awaiting an answer."""
    if 0 < progress.current_index <= len(progress.questions):
        question = progress.questions[progress.current_index - 1]
        if question.id not in progress.answered:
            return question
    return None


def mark_answered(progress: CourseProgress, question_id: str) -> CourseProgress:
    if question_id in progress.answered:
        return progress
    return replace(progress, answered=progress.answered | {question_id})


def assign_slots(
    progress: CourseProgress, instants: Iterable[datetime]
) -> list[tuple[datetime, Question]]:
    """
    Pair scheduled reminder instants with upcoming unanswered questions, in order.

    Extra instants (more slots than questions) are left unpaired.
    """
    upcoming = [
        q for q in progress.questions[max(progress.current_index, 0) :] if q.id not in progress.answered
    ]
    return list(zip(sorted(instants), upcoming))


def wants_another_question(text: str) -> bool:
    """True if a reply asks for another question ("next", "more", "send a question", ...)."""
    return bool(ANOTHER_QUESTION_RE.search(text or ""))


# =============================================================================
# REPLIES
# =============================================================================


class ReplyAction(str, Enum):
    ANSWERED = "answered"
    SENT = "sent"
    COMPLETE = "complete"
    IGNORED = "ignored"


class ReplyOutcome(NamedTuple):
    action: ReplyAction
    question: Optional[Question]
    progress: CourseProgress


def handle_reply(progress: CourseProgress, text: str) -> ReplyOutcome:
    """
    Apply a student's reply to a course.

    A reply while a question is pending answers it. Otherwise a request for
    another question sends the next unanswered one. Anything else leaves the
    course unchanged.
    """
    pending = pending_question(progress)
    if pending is not None:
        return ReplyOutcome(ReplyAction.ANSWERED, pending, mark_answered(progress, pending.id))

    if wants_another_question(text):
        question, updated = advance(progress)
        if question is None:
            return ReplyOutcome(ReplyAction.COMPLETE, None, updated)
        return ReplyOutcome(ReplyAction.SENT, question, updated)

    return ReplyOutcome(ReplyAction.IGNORED, None, progress)


# =============================================================================
# STORAGE
# =============================================================================


class QuestionStoreError(Exception):
    """Raised when questions.json cannot be read or parsed."""

    pass


class QuestionStore:
    """
    Course progress persisted as one JSON object keyed by course id.

    Writes take a file lock and replace the file atomically, the same way
    the free-time ledger does.
    """

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path) if path else paths.questions_file()

    def _read_all(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as e:
            raise QuestionStoreError(f"Cannot read questions file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise QuestionStoreError(f"Questions file {self.path} must be a JSON object")
        return data

    def load(self, course_id: str) -> Optional[CourseProgress]:
        """Returns None when the course is unknown."""
        data = self._read_all().get(course_id)
        if data is None:
            return None
        try:
            return CourseProgress.from_dict(course_id, data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise QuestionStoreError(f"Malformed course {course_id!r}: {e}") from e

    def save(self, progress: CourseProgress) -> None:
        with file_lock(self.path.parent / "locks" / "questions.lock"):
            data = self._read_all()
            data[progress.course_id] = progress.to_dict()
            write_json_atomic(self.path, data)
        logger.info(
            f"Saved course {progress.course_id}: "
            f"{len(progress.answered)}/{len(progress.questions)} answered"
        )

    def course_ids(self) -> list[str]:
        return sorted(self._read_all())
