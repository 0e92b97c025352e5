"""Test plans: window layout, durations and the full-test subject sequence."""
from dataclasses import dataclass

from prep_engine.models import TestKind

FULL = "Full"

SUBJECTS = (
    "Mathematics",
    "Physics",
    "Chemistry",
    "Programming in C",
    "Data Structures",
    "Digital Electronics",
    "Computer Organization",
    "Operating Systems",
    "Database Management Systems",
    "Computer Networks",
)

# Full mock test: 200 questions in 4 windows of 50
FULL_WINDOW_SIZE = 50
FULL_WINDOW_COUNT = 4
FULL_DURATION_SECONDS = 180 * 60

SUBJECT_WINDOW_SIZE = 30
SUBJECT_SECONDS_PER_QUESTION = 60

# Ordered (subject, count) blocks per full-test window.
FULL_WINDOW_SEQUENCE: tuple[tuple[tuple[str, int], ...], ...] = (
    (("Mathematics", 25), ("Physics", 12), ("Chemistry", 13)),
    (("Mathematics", 25), ("Physics", 13), ("Chemistry", 12)),
    (
        ("Programming in C", 10),
        ("Data Structures", 10),
        ("Digital Electronics", 10),
        ("Computer Organization", 10),
        ("Operating Systems", 10),
    ),
    (
        ("Database Management Systems", 10),
        ("Computer Networks", 10),
        ("Programming in C", 10),
        ("Data Structures", 10),
        ("Operating Systems", 10),
    ),
)


@dataclass(frozen=True)
class TestPlan:
    """Shape of a test: how many windows of what size and how long it runs."""

    test_kind: TestKind
    subject: str | None
    window_size: int
    window_count: int
    duration_seconds: int

    @property
    def total_question_count(self) -> int:
        return self.window_size * self.window_count

    @property
    def target(self) -> str:
        """Subject name for subject tests, ``Full`` otherwise."""
        return self.subject if self.subject else FULL


def plan_for(test_kind: TestKind | str, subject: str | None = None) -> TestPlan:
    """Build the plan for a test kind, validating the subject."""
    kind = TestKind(test_kind)
    if kind is TestKind.FULL:
        return TestPlan(
            test_kind=kind,
            subject=None,
            window_size=FULL_WINDOW_SIZE,
            window_count=FULL_WINDOW_COUNT,
            duration_seconds=FULL_DURATION_SECONDS,
        )

    if subject not in SUBJECTS:
        raise ValueError(f"Unknown subject: {subject!r}")
    return TestPlan(
        test_kind=kind,
        subject=subject,
        window_size=SUBJECT_WINDOW_SIZE,
        window_count=1,
        duration_seconds=SUBJECT_WINDOW_SIZE * SUBJECT_SECONDS_PER_QUESTION,
    )


def window_blocks(window_index: int) -> tuple[tuple[str, int], ...]:
    """Return the (subject, count) blocks of a full-test window."""
    if not 0 <= window_index < len(FULL_WINDOW_SEQUENCE):
        raise ValueError(f"No full-test window {window_index}")
    return FULL_WINDOW_SEQUENCE[window_index]


def subject_sequence(window_index: int) -> list[str]:
    """Expand a full-test window into the subject expected at each slot."""
    sequence: list[str] = []
    for subject, count in window_blocks(window_index):
        sequence.extend([subject] * count)
    return sequence
