"""
Exam session state machine.

An ExamSession walks one user through an ordered list of questions, keeps the
option picked for each question, runs the countdown and scores the attempt
once it is submitted. It performs no I/O: the host feeds it timer ticks and
user actions one at a time and persists whatever it needs after each call.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping

OPTION_COUNT = 4
OPTION_IDS = (1, 2, 3, 4)


class SessionStatus(str, enum.Enum):
    """Lifecycle of an exam session."""

    LOADING = "loading"
    IN_PROGRESS = "in_progress"
    SUBMITTING = "submitting"
    COMPLETED = "completed"


class SessionMode(str, enum.Enum):
    """Which flow the session belongs to."""

    LIVE = "live"  # whole-exam countdown, free navigation, marks
    ARCHIVE = "archive"  # per-question countdown, forward only


class TimerScope(str, enum.Enum):
    PER_QUESTION = "per_question"
    WHOLE_EXAM = "whole_exam"


class ExamSessionError(Exception):
    """Base class for session errors."""


class QuestionsUnavailable(ExamSessionError):
    """The exam has no questions to take."""


class InvalidTransition(ExamSessionError):
    """The requested action is not valid in the current state."""


class InvalidOption(ExamSessionError):
    """The selected option does not exist."""


class NavigationNotAllowed(ExamSessionError):
    """The session mode or bounds forbid moving to that question."""


@dataclass(frozen=True)
class Question:
    """One multiple-choice question. Options are numbered 1..4."""

    id: int
    position: int
    text: str
    options: tuple[str, ...]
    correct_option: int
    category: str | None = None
    marks: int = 1
    explanation: str | None = None
    question_images: tuple[dict[str, Any], ...] = ()
    explanation_images: tuple[dict[str, Any], ...] = ()

    def __post_init__(self) -> None:
        if len(self.options) != OPTION_COUNT:
            raise ValueError(
                f"Question {self.id} must have {OPTION_COUNT} options, got {len(self.options)}"
            )
        if self.correct_option not in OPTION_IDS:
            raise ValueError(
                f"Question {self.id} has invalid correct option {self.correct_option!r}"
            )

    def is_correct(self, option: int | None) -> bool:
        return option is not None and option == self.correct_option


@dataclass(frozen=True)
class SessionConfig:
    """Mode-dependent settings of a session.

    time_limit is expressed in ticks: the whole exam for LIVE sessions,
    each question for ARCHIVE sessions.
    """

    mode: SessionMode
    time_limit: int
    total_marks: int | None = None
    passing_marks: int | None = None
    pass_ratio: float = 0.5

    def __post_init__(self) -> None:
        if self.time_limit <= 0:
            raise ValueError("time_limit must be positive")

    @classmethod
    def live(
        cls,
        duration_seconds: int,
        total_marks: int | None = None,
        passing_marks: int | None = None,
    ) -> SessionConfig:
        return cls(
            mode=SessionMode.LIVE,
            time_limit=duration_seconds,
            total_marks=total_marks,
            passing_marks=passing_marks,
        )

    @classmethod
    def archive(cls, question_seconds: int = 60, pass_ratio: float = 0.5) -> SessionConfig:
        return cls(
            mode=SessionMode.ARCHIVE,
            time_limit=question_seconds,
            pass_ratio=pass_ratio,
        )

    @property
    def timer_scope(self) -> TimerScope:
        if self.mode is SessionMode.ARCHIVE:
            return TimerScope.PER_QUESTION
        return TimerScope.WHOLE_EXAM

    @property
    def allow_backtrack(self) -> bool:
        return self.mode is SessionMode.LIVE


@dataclass(frozen=True)
class AnswerRecord:
    """Answer committed when the user leaves a question."""

    question: Question
    option: int
    is_correct: bool
    time_spent: int  # ticks


@dataclass(frozen=True)
class ReviewItem:
    question: Question
    selected_option: int | None
    is_correct: bool
    time_spent: int


@dataclass(frozen=True)
class SessionResult:
    score: int
    answered_count: int
    question_count: int
    marks_obtained: int
    total_marks: int
    percentage: float
    passed: bool
    review: list[ReviewItem] = field(default_factory=list)


class ExamSession:
    """
    State machine for one pass through an exam.

    LOADING -> IN_PROGRESS on load(); IN_PROGRESS stays put on
    select_answer() and moves forward on advance() or timer expiry;
    advancing past the last question (or submit(), or expiry of a
    whole-exam timer) goes through SUBMITTING to COMPLETED, which is final.
    Not thread-safe: the host must deliver stimuli one at a time.
    """

    def __init__(self, config: SessionConfig) -> None:
        self.config = config
        self.status = SessionStatus.LOADING
        self._questions: tuple[Question, ...] = ()
        self._answers: dict[int, int] = {}
        self._time_spent: dict[int, int] = {}
        self._index = 0
        self._time_remaining = config.time_limit
        self._ticks_on_question = 0
        self._result: SessionResult | None = None

    # ---- read side ----

    @property
    def questions(self) -> tuple[Question, ...]:
        return self._questions

    @property
    def question_count(self) -> int:
        return len(self._questions)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current_question(self) -> Question:
        if not self._questions:
            raise InvalidTransition("Session has no questions loaded")
        return self._questions[self._index]

    @property
    def time_remaining(self) -> int:
        return self._time_remaining

    @property
    def answers(self) -> Mapping[int, int]:
        return MappingProxyType(self._answers)

    @property
    def answered_count(self) -> int:
        return len(self._answers)

    @property
    def is_completed(self) -> bool:
        return self.status is SessionStatus.COMPLETED

    @property
    def is_last_question(self) -> bool:
        return self._index == len(self._questions) - 1

    @property
    def score(self) -> int:
        return self.result().score

    def result(self) -> SessionResult:
        if self._result is None:
            raise InvalidTransition("Session is not completed yet")
        return self._result

    # ---- transitions ----

    def load(self, questions: Iterable[Question]) -> None:
        """Install the question list and start the clock."""
        if self.status is not SessionStatus.LOADING:
            raise InvalidTransition("Questions are already loaded")
        loaded = tuple(questions)
        if not loaded:
            raise QuestionsUnavailable("No questions available for this exam")
        ids = [question.id for question in loaded]
        if len(set(ids)) != len(ids):
            raise ValueError("Question ids must be unique")

        self._questions = loaded
        self._index = 0
        self._time_remaining = self.config.time_limit
        self._ticks_on_question = 0
        self.status = SessionStatus.IN_PROGRESS

    def select_answer(self, option: int) -> None:
        """Record the option for the current question, replacing any earlier pick."""
        self._require_in_progress()
        if isinstance(option, bool) or option not in OPTION_IDS:
            raise InvalidOption(f"Option must be one of {OPTION_IDS}, got {option!r}")
        self._answers[self.current_question.id] = option

    def advance(self) -> AnswerRecord | None:
        """Move to the next question, or submit when on the last one.

        Archive sessions only let the user move on once an option is picked;
        the timer can still leave a question unanswered.
        """
        self._require_in_progress()
        if (
            self.config.mode is SessionMode.ARCHIVE
            and self.current_question.id not in self._answers
        ):
            raise InvalidTransition("Select an option before moving on")
        return self._advance()

    def previous(self) -> AnswerRecord | None:
        self._require_in_progress()
        self._require_backtrack()
        if self._index == 0:
            return None
        record = self._leave_current()
        self._index -= 1
        return record

    def go_to(self, index: int) -> AnswerRecord | None:
        self._require_in_progress()
        self._require_backtrack()
        if not 0 <= index < len(self._questions):
            raise NavigationNotAllowed(f"Question index {index} is out of range")
        if index == self._index:
            return None
        record = self._leave_current()
        self._index = index
        return record

    def submit(self) -> AnswerRecord | None:
        """Finish the exam from whatever question is current (live exams only).

        Archive sessions finish by advancing past the last question.
        """
        self._require_in_progress()
        self._require_backtrack()
        return self._submit()

    def tick(self) -> AnswerRecord | None:
        """Count down one interval; on zero, move on even without an answer.

        Ticks outside IN_PROGRESS are ignored.
        """
        if self.status is not SessionStatus.IN_PROGRESS:
            return None
        self._ticks_on_question += 1
        self._time_remaining = max(0, self._time_remaining - 1)
        if self._time_remaining > 0:
            return None
        if self.config.timer_scope is TimerScope.WHOLE_EXAM:
            return self._submit()
        return self._advance()

    # ---- internals ----

    def _require_in_progress(self) -> None:
        if self.status is not SessionStatus.IN_PROGRESS:
            raise InvalidTransition(f"Session is {self.status.value}")

    def _require_backtrack(self) -> None:
        if not self.config.allow_backtrack:
            raise NavigationNotAllowed(
                f"{self.config.mode.value} sessions only move forward"
            )

    def _advance(self) -> AnswerRecord | None:
        record = self._leave_current()
        if self.is_last_question:
            self._complete()
        else:
            self._index += 1
            if self.config.timer_scope is TimerScope.PER_QUESTION:
                self._time_remaining = self.config.time_limit
        return record

    def _submit(self) -> AnswerRecord | None:
        record = self._leave_current()
        self._complete()
        return record

    def _leave_current(self) -> AnswerRecord | None:
        question = self.current_question
        spent = self._ticks_on_question
        self._ticks_on_question = 0
        self._time_spent[question.id] = self._time_spent.get(question.id, 0) + spent

        option = self._answers.get(question.id)
        if option is None:
            return None
        return AnswerRecord(
            question=question,
            option=option,
            is_correct=question.is_correct(option),
            time_spent=spent,
        )

    def _complete(self) -> None:
        self.status = SessionStatus.SUBMITTING

        score = 0
        marks_obtained = 0
        review = []
        for question in self._questions:
            selected = self._answers.get(question.id)
            correct = question.is_correct(selected)
            if correct:
                score += 1
                marks_obtained += question.marks
            review.append(
                ReviewItem(
                    question=question,
                    selected_option=selected,
                    is_correct=correct,
                    time_spent=self._time_spent.get(question.id, 0),
                )
            )

        self._result = self._build_result(score, marks_obtained, review)
        self.status = SessionStatus.COMPLETED

    def _build_result(
        self, score: int, marks_obtained: int, review: list[ReviewItem]
    ) -> SessionResult:
        question_count = len(self._questions)
        total_marks = self.config.total_marks or sum(q.marks for q in self._questions)

        if self.config.mode is SessionMode.LIVE:
            percentage = (marks_obtained / total_marks) * 100 if total_marks else 0.0
            if self.config.passing_marks is not None:
                passed = marks_obtained >= self.config.passing_marks
            else:
                passed = percentage >= self.config.pass_ratio * 100
        else:
            percentage = (score / question_count) * 100
            passed = score >= question_count * self.config.pass_ratio

        return SessionResult(
            score=score,
            answered_count=len(self._answers),
            question_count=question_count,
            marks_obtained=marks_obtained,
            total_marks=total_marks,
            percentage=round(percentage, 2),
            passed=passed,
            review=review,
        )
