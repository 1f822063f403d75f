"""QuestionCatalog — loads the intake questions from YAML into typed models.

The catalog is process-wide and read-only: it is loaded once at startup and
then shared by the flow controller, the extractor and the HTTP layer.

Usage::

    catalog = QuestionCatalog()     # defaults to the packaged data/questions.yaml
    catalog.load()

    q = catalog.get("urgency")
    for q in catalog.questions:     # declared order == traversal order
        ...
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional

import yaml

from legal_intake.errors import CatalogError
from legal_intake.models.question import Question, question_mapper

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent / "data"


def load_yaml(path: Path | str) -> Any:
    """Load a single YAML file and return the parsed contents."""
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


class QuestionCatalog:
    """Ordered, immutable collection of intake questions.

    Attributes populated after :meth:`load` (or :meth:`from_questions`):

        questions — list[Question] in declared order
        keywords  — dict[lower-case keyword, question id] for the extractor
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path) if path is not None else DATA_DIR / "questions.yaml"
        self.questions: list[Question] = []
        self.keywords: dict[str, str] = {}
        self._by_id: dict[str, Question] = {}

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def load(self) -> "QuestionCatalog":
        """Parse the YAML file and validate catalog invariants.

        Raises ``FileNotFoundError`` if the file is missing and
        ``CatalogError`` if the content is inconsistent.
        """
        raw = load_yaml(self._path) or {}
        questions = [self._parse_question(q) for q in raw.get("questions", [])]
        self._install(questions, raw.get("keywords") or {})
        logger.info(
            "QuestionCatalog loaded: %d questions, %d keywords from %s",
            len(self.questions), len(self.keywords), self._path.name,
        )
        return self

    @classmethod
    def from_questions(
        cls,
        questions: Iterable[Question | dict],
        keywords: Optional[dict[str, str]] = None,
    ) -> "QuestionCatalog":
        """Build a catalog directly from models or dicts (tests, embedding)."""
        catalog = cls()
        parsed = [q if not isinstance(q, dict) else catalog._parse_question(q) for q in questions]
        catalog._install(parsed, keywords or {})
        return catalog

    @staticmethod
    def _parse_question(raw: dict) -> Question:
        qtype = raw.get("type")
        cls = question_mapper.get(qtype)
        if cls is None:
            raise CatalogError(f"Unknown question type '{qtype}' for question {raw.get('id')!r}")
        return cls(**raw)

    def _install(self, questions: list[Question], keywords: dict[str, str]) -> None:
        by_id: dict[str, Question] = {}
        for q in questions:
            if q.id in by_id:
                raise CatalogError(f"Duplicate question id: {q.id}")
            by_id[q.id] = q

        for q in questions:
            if q.visibility is None:
                continue
            dep = q.visibility.depends_on
            if dep not in by_id:
                raise CatalogError(
                    f"Question {q.id} depends on unknown question {dep}"
                )
        self._check_cycles(by_id)

        normalized: dict[str, str] = {}
        for word, qid in keywords.items():
            if qid not in by_id:
                raise CatalogError(f"Keyword '{word}' maps to unknown question {qid}")
            normalized[str(word).lower()] = qid

        self.questions = list(questions)
        self._by_id = by_id
        self.keywords = normalized

    @staticmethod
    def _check_cycles(by_id: dict[str, Question]) -> None:
        """Reject visibility chains that loop back on themselves."""
        for start in by_id.values():
            seen = {start.id}
            current = start
            while current.visibility is not None:
                dep = current.visibility.depends_on
                if dep in seen:
                    raise CatalogError(f"Visibility cycle through question {start.id}")
                seen.add(dep)
                current = by_id[dep]

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, qid: str) -> Question:
        """Look up a question by id.

        Raises:
            KeyError: if ``qid`` is not in the catalog.
        """
        try:
            return self._by_id[qid]
        except KeyError:
            raise KeyError(f"Unknown question: {qid}") from None

    def ids(self) -> list[str]:
        return [q.id for q in self.questions]

    def __contains__(self, qid: object) -> bool:
        return qid in self._by_id

    def __iter__(self) -> Iterator[Question]:
        return iter(self.questions)

    def __len__(self) -> int:
        return len(self.questions)
