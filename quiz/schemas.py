from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GeneratedQuestion(BaseModel):
    """One question as the generator returned it, before authoring checks."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    question: str = Field(min_length=1)
    options: List[str] = Field(min_length=1)
    correct_answer: str = Field(alias="correctAnswer", min_length=1)
    explanation: str = ""

    @field_validator("options", mode="before")
    @classmethod
    def stringify_options(cls, value):
        if isinstance(value, list):
            return [str(option) if isinstance(option, (int, float)) else option for option in value]
        return value

    @field_validator("correct_answer", mode="before")
    @classmethod
    def stringify_correct_answer(cls, value):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("explanation", mode="before")
    @classmethod
    def default_explanation(cls, value):
        return value or ""


class GenerationResult(BaseModel):
    questions: List[GeneratedQuestion]
    warning: Optional[str] = None

    def to_dict(self):
        data = {
            "success": True,
            "questions": [question.model_dump(by_alias=True) for question in self.questions],
        }
        if self.warning:
            data["warning"] = self.warning
        return data
