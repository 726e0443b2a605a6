import json
import logging
import random
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple


class QuestionBankError(Exception):
    """Raised when a question file cannot be read or parsed."""


@dataclass(frozen=True)
class Question:
    prompt: str
    expected_answer: str

    def matches(self, raw_answer: str) -> bool:
        # Only the submission is trimmed
        return raw_answer.strip().lower() == self.expected_answer.lower()


DEFAULT_QUESTIONS: Tuple[Question, ...] = (
    Question(prompt='What is 2 + 2?', expected_answer='4'),
)


def _parse_record(record) -> Question:
    if not isinstance(record, dict):
        raise QuestionBankError(f"question record must be an object, got {type(record).__name__}")
    prompt = record.get('prompt', record.get('text'))
    answer = record.get('expectedAnswer', record.get('answer'))
    if not isinstance(prompt, str) or not prompt or answer is None:
        raise QuestionBankError(f"question record is missing prompt or answer: {record!r}")
    return Question(prompt=prompt, expected_answer=str(answer))


class QuestionBank:
    """Read-only collection of questions shared by every room.

    Records are kept in file order. Rooms only ever ask for the questions
    they have not used yet, so no locking is needed after load.
    """

    def __init__(self, questions: Iterable[Question], is_fallback: bool = False):
        self._questions: Tuple[Question, ...] = tuple(questions)
        self.is_fallback = is_fallback

    def __len__(self) -> int:
        return len(self._questions)

    def __iter__(self):
        return iter(self._questions)

    @classmethod
    def from_file(cls, path: str) -> 'QuestionBank':
        try:
            with open(path, encoding='utf-8') as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            raise QuestionBankError(f"could not read {path}: {exc}") from exc
        if not isinstance(data, list):
            raise QuestionBankError(f"{path} must contain a JSON array")
        return cls(_parse_record(r) for r in data)

    @classmethod
    def load_or_default(cls, path: str, logger: Optional[logging.Logger] = None) -> 'QuestionBank':
        logger = logger or logging.getLogger(__name__)
        try:
            bank = cls.from_file(path)
        except QuestionBankError:
            logger.exception(f"[questions-fallback] path={path} using built-in question set")
            return cls(DEFAULT_QUESTIONS, is_fallback=True)
        logger.info(f"[questions-loaded] path={path} count={len(bank)}")
        return bank

    def unused(self, used_prompts) -> List[Question]:
        return [q for q in self if q.prompt not in used_prompts]

    def pick_unused(self, used_prompts, rng: Optional[random.Random] = None) -> Optional[Question]:
        """Uniformly random choice among questions not yet used, or None."""
        candidates = self.unused(used_prompts)
        if not candidates:
            return None
        return (rng or random).choice(candidates)
