"""Question models.

A question is either multiple choice (options plus the id of the correct
option) or open ended (short answer / essay, graded with a rubric). The
``question_type`` field selects the variant.
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

MULTIPLE_CHOICE = "multiple_choice"
SHORT_ANSWER = "short_answer"
ESSAY = "essay"
QUESTION_TYPES = (MULTIPLE_CHOICE, SHORT_ANSWER, ESSAY)


class QuestionOption(BaseModel):
    id: int
    text: str = ""


class _BaseQuestion(BaseModel):
    model_config = ConfigDict(extra="ignore")

    question_number: int
    question_text: str = ""
    points: int = 1


class MultipleChoiceQuestion(_BaseQuestion):
    question_type: Literal["multiple_choice"] = MULTIPLE_CHOICE
    options: List[QuestionOption] = []
    correct_answer: Optional[int] = None  # id of the correct option


class OpenEndedQuestion(_BaseQuestion):
    question_type: Literal["short_answer", "essay"] = SHORT_ANSWER
    rubric: Optional[str] = ""


Question = Annotated[
    Union[MultipleChoiceQuestion, OpenEndedQuestion],
    Field(discriminator="question_type"),
]
