"""
Seed loader for the in-memory stores.

Deployments without an external question bank point SEED_DATA_PATH at a JSON
file of questions and tests; it is loaded once at startup. File layout:

    {
      "questions": [{"id": "q1", "question_type": "single_choice",
                     "correct_answer": 2, "options": ["a", "b", "c"],
                     "subject": "Physics", "topic": "Mechanics"}],
      "tests": [{"id": "t1", "title": "Mock 1", "duration_minutes": 60,
                 "bindings": [{"question_id": "q1", "order": 1, "marks": 4,
                               "negative_marks": 1, "section_id": "phy"}],
                 "sections": [{"id": "phy", "name": "Physics"}]}]
    }
"""
import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, Field

from app.models.models import (
    QuestionDefinition,
    TestDefinition,
    TestQuestionBinding,
    TestSection,
    TestSubsection,
)
from app.services.stores import InMemoryQuestionBank, InMemoryTestDefinitionStore
from libs.domain_types import QuestionType

logger = logging.getLogger(__name__)


class SeedQuestion(BaseModel):
    id: str
    question_type: QuestionType
    correct_answer: Union[int, List[int], str]
    options: List[str] = Field(default_factory=list)
    marks: float = 1.0
    penalty: float = 0.0
    subject: Optional[str] = None
    topic: Optional[str] = None
    subtopic: Optional[str] = None

    def to_definition(self) -> QuestionDefinition:
        return QuestionDefinition(
            id=self.id,
            question_type=self.question_type,
            correct_answer=self.correct_answer,
            options=tuple(self.options),
            marks=self.marks,
            penalty=self.penalty,
            subject=self.subject,
            topic=self.topic,
            subtopic=self.subtopic,
        )


class SeedSubsection(BaseModel):
    id: str
    name: str


class SeedSection(BaseModel):
    id: str
    name: str
    subsections: List[SeedSubsection] = Field(default_factory=list)


class SeedBinding(BaseModel):
    question_id: str
    order: int
    marks: float
    negative_marks: float = 0.0
    section_id: str = ""
    subsection_id: str = ""


class SeedTest(BaseModel):
    id: str
    title: str
    duration_minutes: int
    bindings: List[SeedBinding]
    sections: List[SeedSection] = Field(default_factory=list)

    def to_definition(self) -> TestDefinition:
        return TestDefinition(
            id=self.id,
            title=self.title,
            duration_minutes=self.duration_minutes,
            bindings=tuple(
                TestQuestionBinding(**binding.model_dump()) for binding in self.bindings
            ),
            sections=tuple(
                TestSection(
                    id=section.id,
                    name=section.name,
                    subsections=tuple(
                        TestSubsection(id=sub.id, name=sub.name)
                        for sub in section.subsections
                    ),
                )
                for section in self.sections
            ),
        )


class SeedData(BaseModel):
    questions: List[SeedQuestion] = Field(default_factory=list)
    tests: List[SeedTest] = Field(default_factory=list)


def load_seed_data(
    path: Union[str, Path],
    question_bank: InMemoryQuestionBank,
    test_store: InMemoryTestDefinitionStore,
) -> Tuple[int, int]:
    """
    Load questions and tests from a JSON seed file into the stores.

    Returns:
        (questions loaded, tests loaded)

    Raises:
        OSError: The file cannot be read
        pydantic.ValidationError: The file does not match the seed layout
        ValueError: A question or test violates a model invariant
    """
    seed = SeedData.model_validate_json(Path(path).read_text(encoding="utf-8"))

    for question in seed.questions:
        question_bank.add_question(question.to_definition())
    for test in seed.tests:
        test_store.add_test(test.to_definition())

    logger.info(
        f"Loaded seed data from {path}: {len(seed.questions)} questions, "
        f"{len(seed.tests)} tests"
    )
    return len(seed.questions), len(seed.tests)
