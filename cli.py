import argparse
import asyncio
import json
from pathlib import Path

from core.logging_setup import setup_console_logging
from prep_api.database import SessionLocal, init_db
from prep_api.services import static_question_service
from prep_api.services.generation_service import (
    AnthropicQuestionGenerator,
    generate_important_pool,
)
from prep_engine.blueprint import SUBJECTS

setup_console_logging()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage the static question pool")
    commands = parser.add_subparsers(dest="command", required=True)

    seed = commands.add_parser("seed", help="Load questions from a JSON file")
    seed.add_argument("file", type=Path, help="JSON array of questions")

    commands.add_parser("count", help="Show pool size per subject")

    generate = commands.add_parser(
        "generate", help="Generate important questions for a subject"
    )
    generate.add_argument("subject", choices=SUBJECTS)
    generate.add_argument("--count", type=int, default=200)
    return parser.parse_args(argv)


def load_questions(path: Path) -> list[dict[str, object]]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("questions", [])
    if not isinstance(data, list):
        raise ValueError(f"{path} does not contain a list of questions")
    return data


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    init_db()

    if args.command == "generate":
        questions = asyncio.run(
            generate_important_pool(AnthropicQuestionGenerator(), args.subject, args.count)
        )
        payloads = [question.to_payload() for question in questions]
    elif args.command == "seed":
        payloads = load_questions(args.file)
    else:
        payloads = []

    db = SessionLocal()
    try:
        if payloads:
            inserted = static_question_service.add_questions(db, payloads)
            print(f"Inserted {inserted} questions")
        for row in static_question_service.count_by_subject(db):
            print(f"{row['subject']}: {row['count']} ({row['important_count']} important)")
    finally:
        db.close()


if __name__ == "__main__":
    main()
