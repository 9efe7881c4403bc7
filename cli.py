import argparse
import logging

from examhall.database import SessionLocal, init_db
from examhall.logging_setup import setup_console_logging
from examhall.services.seed_service import seed_categories, seed_sample_exam

setup_console_logging()
logger = logging.getLogger("examhall.cli")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="ExamHall management commands")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the API server")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true", help="Reload on code changes")

    sub.add_parser("init-db", help="Create database tables")

    sub.add_parser("seed", help="Insert dashboard categories and the sample archived exam")
    return parser.parse_args()


def main() -> None:
    args = parse_args()

    if args.command == "serve":
        import uvicorn

        uvicorn.run("examhall.app:app", host=args.host, port=args.port, reload=args.reload)
        return

    init_db()
    if args.command == "init-db":
        logger.info("Database tables created")
        return

    db = SessionLocal()
    try:
        added = seed_categories(db)
        exam = seed_sample_exam(db)
    finally:
        db.close()
    print(f"Seeded {added} categories; sample archived exam id={exam.id}")


if __name__ == "__main__":
    main()
