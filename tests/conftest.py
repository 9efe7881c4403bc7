import os
import tempfile
from datetime import datetime, timedelta, timezone

os.environ.setdefault("DB_DIR", tempfile.mkdtemp(prefix="examhall-tests-"))
os.environ.setdefault("SESSION_TICKER_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from examhall.app import app
from examhall.database import Base, get_db, init_db
from examhall.models.db import ArchivedExam, ArchivedQuestion, Exam, ExamQuestion, User
from examhall.services.auth_service import create_user, issue_token
from examhall.services.session_service import SessionRegistry, get_registry


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def registry(session_factory) -> SessionRegistry:
    return SessionRegistry(session_factory=session_factory, question_seconds=3)


@pytest.fixture()
def user(db) -> User:
    return create_user(db, "rahim", "rahim@example.com", "secret123", "Rahim Uddin")


@pytest.fixture()
def other_user(db) -> User:
    return create_user(db, "karim", "karim@example.com", "secret123")


@pytest.fixture()
def live_exam(db) -> Exam:
    exam = Exam(
        title="Weekly Model Test",
        duration_minutes=1,
        total_marks=4,
        passing_marks=2,
        start_time=datetime.now(timezone.utc) - timedelta(minutes=5),
    )
    answers = [1, 2, 3]
    for number, correct in enumerate(answers, start=1):
        exam.questions.append(
            ExamQuestion(
                question_text=f"Live question {number}",
                option_a="A",
                option_b="B",
                option_c="C",
                option_d="D",
                correct_answer=correct,
                marks=2 if number == 1 else 1,
                order_number=number,
            )
        )
    db.add(exam)
    db.commit()
    db.refresh(exam)
    return exam


@pytest.fixture()
def archived_exam(db) -> ArchivedExam:
    exam = ArchivedExam(
        exam_code="bcs-49-general",
        exam_title="49th Special BCS General Part",
        exam_date="Oct 11, 2025",
        total_questions=3,
    )
    exam.categories = {".1": "Bangla", ".2": "English"}
    exam.category_stats = {"Bangla": 2, "English": 1}
    for number, (category, correct) in enumerate(
        [("Bangla", 1), ("Bangla", 2), ("English", 1)], start=1
    ):
        question = ArchivedQuestion(
            question_number=number,
            category=category,
            question_text=f"Archive question {number}",
            correct_answer=correct,
            explanation=f"Explanation {number}",
        )
        question.options = ["one", "two", "three", "four"]
        exam.questions.append(question)
    db.add(exam)
    db.commit()
    db.refresh(exam)
    return exam


@pytest.fixture()
def client(session_factory, registry):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_registry] = lambda: registry
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers(db, user) -> dict[str, str]:
    token, _ = issue_token(db, user.id)
    return {"Authorization": f"Bearer {token}"}
