"""ExamHall: timed multiple-choice exams over HTTP."""

__version__ = "0.1.0"
