import logging
import time
from typing import List, Optional

import openai
from django.conf import settings
from langchain_openai import ChatOpenAI
from langchain_core.prompts import PromptTemplate

from quiz.parsing import PARSE_STRATEGIES, parse_questions
from quiz.schemas import GeneratedQuestion, GenerationResult


logger = logging.getLogger("quiz_master")


example_response_json = """[
  {
    "question": "Question text here?",
    "options": ["option1", "option2", "option3", "option4"],
    "correctAnswer": "option1",
    "explanation": "Brief explanation of why option1 is correct"
  },
  {
    "question": "Next question here?",
    "options": ["option1", "option2", "option3", "option4"],
    "correctAnswer": "option2",
    "explanation": "Brief explanation of why option2 is correct"
  }
]"""


topic_template = """You are a quiz generator. I need you to generate a {difficulty} difficulty quiz about {topic} with {number_of_questions} multiple choice questions.

IMPORTANT: Your output must ONLY contain a valid JSON array with question objects in this exact format:
{response_json}

Do not include any introductory text, explanations, or comments - ONLY output the JSON array."""


source_text_template = """You are a quiz generator. I need you to generate a {difficulty} difficulty quiz about {topic} with {number_of_questions} multiple choice questions based on the provided content.

Here's the content to base the quiz on:
{file_content}

IMPORTANT: Your output must ONLY contain a valid JSON array with question objects in this exact format:
{response_json}

Do not include any introductory text, explanations, or comments - ONLY output the JSON array."""


fallback_templates = [
    {
        "question": "What is a key feature of {topic}?",
        "options": ["Automatic memory management", "Strong typing", "Dynamic routing", "Concurrent processing"],
        "correctAnswer": "Dynamic routing",
        "explanation": "This is a common feature of many frameworks and systems.",
    },
    {
        "question": "Which tool is commonly used with {topic}?",
        "options": ["Git", "Docker", "Webpack", "Postman"],
        "correctAnswer": "Docker",
        "explanation": "Docker is widely used for containerization in various development environments.",
    },
    {
        "question": "What design pattern is most associated with {topic}?",
        "options": ["Singleton", "Factory", "MVC", "Observer"],
        "correctAnswer": "MVC",
        "explanation": "MVC (Model-View-Controller) is a commonly used design pattern in many frameworks.",
    },
    {
        "question": "When was {topic} first introduced?",
        "options": ["2000-2005", "2005-2010", "2010-2015", "2015-2020"],
        "correctAnswer": "2010-2015",
        "explanation": "Many modern frameworks and tools were introduced during this period.",
    },
    {
        "question": "Which company is primarily responsible for developing {topic}?",
        "options": ["Google", "Microsoft", "Facebook", "Amazon"],
        "correctAnswer": "Google",
        "explanation": "Google has contributed to many popular frameworks and technologies.",
    },
]


class GeneratorTimeout(Exception):
    pass


class GeneratorServiceError(Exception):
    pass


class LangchainQuestionGenerator:
    """
    The external text generator. ``complete`` sends one prompt and returns the
    raw text of the reply, raising ``GeneratorTimeout`` or
    ``GeneratorServiceError`` when the call fails.
    """

    def __init__(self, model=None):
        self._model = model

    @property
    def model(self):
        if self._model is None:
            self._model = ChatOpenAI(
                model=settings.QUIZ_LLM_MODEL,
                api_key=settings.OPEN_API_KEY,
                temperature=settings.QUIZ_LLM_TEMPERATURE,
                timeout=settings.QUIZ_LLM_TIMEOUT,
                max_retries=0,
            )
        return self._model

    def complete(self, prompt: str) -> str:
        try:
            output = self.model.invoke(prompt)
        except openai.APITimeoutError as e:
            raise GeneratorTimeout(str(e)) from e
        except Exception as e:
            raise GeneratorServiceError(str(e)) from e

        return output.content


def build_prompt(topic: str, difficulty: str, number_of_questions: int, source_text: Optional[str] = None) -> str:
    if source_text:
        prompt = PromptTemplate(
            template=source_text_template,
            input_variables=["difficulty", "topic", "number_of_questions", "file_content", "response_json"],
        )
        return prompt.format(difficulty=difficulty, topic=topic, number_of_questions=number_of_questions,
                             file_content=source_text, response_json=example_response_json)

    prompt = PromptTemplate(
        template=topic_template,
        input_variables=["difficulty", "topic", "number_of_questions", "response_json"],
    )
    return prompt.format(difficulty=difficulty, topic=topic, number_of_questions=number_of_questions,
                         response_json=example_response_json)


def fallback_questions(topic: str, count: int) -> List[GeneratedQuestion]:
    questions = []

    for index in range(count):
        template = fallback_templates[index % len(fallback_templates)]
        question = template["question"].format(topic=topic)
        explanation = template["explanation"]

        if index >= len(fallback_templates):
            question = f"Advanced: {question}"
            explanation = f"Advanced version of the explanation: {explanation}"

        questions.append(GeneratedQuestion(
            question=question,
            options=list(template["options"]),
            correct_answer=template["correctAnswer"],
            explanation=explanation,
        ))

    return questions


class QuizQuestionGenerator:
    """
    Turns a topic (and optionally some source text) into a list of questions.

    ``generate`` never raises. Timeouts are retried with a linear backoff,
    unparseable output with source text is retried once without it, and
    anything else ends in the fixed fallback questions plus a warning.
    """

    def __init__(self, client=None, strategies=PARSE_STRATEGIES, max_retries=None, retry_delay=None,
                 sleep=time.sleep):
        self.client = client or LangchainQuestionGenerator()
        self.strategies = strategies
        self.max_retries = settings.QUIZ_GENERATION_MAX_RETRIES if max_retries is None else max_retries
        self.retry_delay = settings.QUIZ_GENERATION_RETRY_DELAY if retry_delay is None else retry_delay
        self.sleep = sleep

    def _complete_with_retry(self, prompt: str) -> str:
        attempt = 0
        while True:
            attempt += 1
            try:
                return self.client.complete(prompt)
            except GeneratorTimeout as e:
                if attempt > self.max_retries:
                    raise
                delay = self.retry_delay * attempt
                logger.warning(f"Question generation timed out (attempt {attempt}), retrying in {delay}s: {e}")
                self.sleep(delay)

    def generate(self, topic: str, difficulty: str, count: int, source_text: Optional[str] = None) -> GenerationResult:
        logger.info(f"Generating {count} {difficulty} questions about {topic!r} "
                    f"(source text: {'yes' if source_text else 'no'})")

        prompt = build_prompt(topic, difficulty, count, source_text)

        try:
            raw = self._complete_with_retry(prompt)
        except (GeneratorTimeout, GeneratorServiceError) as e:
            logger.error(f"Question generation failed: {e}")
            return GenerationResult(
                questions=fallback_questions(topic, count),
                warning=f"Used default questions due to error: {e}",
            )

        questions = parse_questions(raw, self.strategies)
        if questions:
            return GenerationResult(questions=questions)

        logger.warning(f"Could not parse generator output ({len(raw or '')} chars)")

        if source_text:
            logger.info("Retrying question generation without the source text")
            return self.generate(topic, difficulty, count)

        return GenerationResult(
            questions=fallback_questions(topic, count),
            warning="Used default questions due to AI response parsing failure",
        )


def generate_questions(topic: str, difficulty: str, count: int, source_text: Optional[str] = None,
                       generator: Optional[QuizQuestionGenerator] = None) -> GenerationResult:
    generator = generator or QuizQuestionGenerator()
    return generator.generate(topic, difficulty, count, source_text)
