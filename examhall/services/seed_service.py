"""Sample catalogue data for a fresh database."""
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session as DBSession

from examhall.models.db.archive import ArchivedExam, ArchivedQuestion
from examhall.models.db.category import Category

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    ("Archive", "আর্কাইভ", "BookOpen", "blue"),
    ("Quick Practice", "কুইক প্র্যাকটিস", "Zap", "yellow"),
    ("Mock Exams", "মক পরীক্ষা", "Image", "purple"),
    ("Chit Chat", "চিট চ্যাট", "MessageCircle", "green"),
    ("AI Practice", "এআই প্র্যাকটিস", "Bot", "cyan"),
    ("Leaderboard", "লিডারবোর্ড", "Trophy", "orange"),
]

SAMPLE_EXAM = {
    "exam_code": "৪৯তম_স্পেশাল_বিসিএস_মূল_প্রশ্নপত্রের_উপর_Live_পরীক",
    "exam_title": "৪৯তম স্পেশাল বিসিএস মূল প্রশ্নপত্রের উপর Live পরীক্ষা।\nবিষয় - জেনারেল পার্ট।",
    "exam_date": "Oct 11, 2025",
    "total_questions": 100,
    "questions_with_images": 0,
    "explanations_found": 100,
    "explanations_missing": 0,
    "categories": {
        ".1": "বাংলা ভাষা ও সাহিত্য",
        ".2": "English Language and Literature",
        ".3": "বাংলাদেশ বিষয়াবলি",
        ".4": "আন্তর্জাতিক বিষয়াবলি",
        ".5": "গাণিতিক যুক্তি ও মানসিক দক্ষতা",
    },
    "category_stats": {
        "Unknown": 1,
        "বাংলা ভাষা ও সাহিত্য": 19,
        "English Language and Literature": 20,
        "বাংলাদেশ বিষয়াবলি": 20,
        "আন্তর্জাতিক বিষয়াবলি": 20,
        "গাণিতিক যুক্তি ও মানসিক দক্ষতা": 20,
    },
}

SAMPLE_QUESTIONS = [
    {
        "question_number": 2,
        "category": "বাংলা ভাষা ও সাহিত্য",
        "question_text": "২) আহমদ শরীফের মতে মধ্যযুগে চণ্ডীদাস নামে কতজন কবি ছিলেন?",
        "options": ["২", "৩", "৪", "৫"],
        "correct_answer": 2,
        "explain_id": "12002-2",
        "explanation": (
            "সঠিক উত্তর হলো- খ) ৩\n\nব্যাখ্যা:\n"
            "আহমদ শরীফের গবেষণা অনুসারে, মধ্যযুগে চণ্ডীদাস নামে তিনজন কবি ছিলেন।\n"
            "যথা:\n১। অনন্ত বড়ু চণ্ডীদাস- সর্বপ্রাচীন চণ্ডীদাস,\n"
            "২। চণ্ডীদাস- চৈতন্য পূর্বকালের বা জ্যেষ্ঠ সমসাময়িক এবং \n"
            "৩। দীন চণ্ডীদাস- আঠারো শতকের শেষার্ধ।\n\n"
            "এই তিনজনের রচিত পদাবলীতে রাধা-কৃষ্ণের প্রেমকাহিনী এবং বৈষ্ণব ভক্তির প্রতিফলন ঘটেছে।"
        ),
    },
    {
        "question_number": 3,
        "category": "বাংলা ভাষা ও সাহিত্য",
        "question_text": "৩) নিচের কোনটি মীর মশাররফ হোসেনের রচনা?",
        "options": ["বিষাদ-সিন্ধু", "গাজী মিয়াঁর বস্তানী", "মধুমালা", "মোসলেম বীরত্ব"],
        "correct_answer": 1,
        "explain_id": "12002-3",
        "explanation": (
            "সঠিক উত্তর: ক) বিষাদ-সিন্ধু\n\nব্যাখ্যা:\n"
            "মীর মশাররফ হোসেন (১৮৪৭-১৯১১) বাংলা সাহিত্যের একজন বিখ্যাত ঔপন্যাসিক ও নাট্যকার। "
            "তাঁর সর্বশ্রেষ্ঠ রচনা \"বিষাদ-সিন্ধু\" (১৮৮৫-১৮৯১)।"
        ),
    },
    {
        "question_number": 4,
        "category": "English Language and Literature",
        "question_text": "৪) Which of the following is the correct sentence?",
        "options": [
            "I have seen him yesterday",
            "I saw him yesterday",
            "I had seen him yesterday",
            "I will see him yesterday",
        ],
        "correct_answer": 2,
        "explain_id": "12002-4",
        "explanation": (
            "Correct Answer: b) I saw him yesterday\n\nExplanation:\n"
            "When referring to a specific time in the past (like \"yesterday\"), "
            "we use simple past tense, not present perfect."
        ),
    },
]


def seed_categories(db: DBSession) -> int:
    """Insert missing dashboard categories. Returns how many were added."""
    existing = set(db.execute(select(Category.name)).scalars())
    added = 0
    for name, name_bn, icon, color in DEFAULT_CATEGORIES:
        if name in existing:
            continue
        db.add(Category(name=name, name_bn=name_bn, icon=icon, color=color))
        added += 1
    db.commit()
    return added


def seed_sample_exam(db: DBSession) -> ArchivedExam:
    """Insert the sample archived exam unless it is already present."""
    exam = db.execute(
        select(ArchivedExam).where(ArchivedExam.exam_code == SAMPLE_EXAM["exam_code"])
    ).scalar_one_or_none()
    if exam is not None:
        logger.info("Sample exam already seeded (id=%s)", exam.id)
        return exam

    exam = ArchivedExam(
        exam_code=SAMPLE_EXAM["exam_code"],
        exam_title=SAMPLE_EXAM["exam_title"],
        exam_date=SAMPLE_EXAM["exam_date"],
        total_questions=SAMPLE_EXAM["total_questions"],
        questions_with_images=SAMPLE_EXAM["questions_with_images"],
        explanations_found=SAMPLE_EXAM["explanations_found"],
        explanations_missing=SAMPLE_EXAM["explanations_missing"],
        is_active=True,
    )
    exam.categories = SAMPLE_EXAM["categories"]
    exam.category_stats = SAMPLE_EXAM["category_stats"]

    for data in SAMPLE_QUESTIONS:
        question = ArchivedQuestion(
            question_number=data["question_number"],
            category=data["category"],
            question_text=data["question_text"],
            correct_answer=data["correct_answer"],
            explain_id=data["explain_id"],
            explanation=data["explanation"],
        )
        question.options = data["options"]
        exam.questions.append(question)

    db.add(exam)
    db.commit()
    db.refresh(exam)
    logger.info("Sample exam data seeded (id=%s)", exam.id)
    return exam
