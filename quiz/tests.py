import json
import os
import shutil
import tempfile
from datetime import timedelta
from unittest.mock import patch, Mock

import httpx
import openai
from django.contrib.auth.models import User
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, Client, override_settings
from django.utils import timezone

from accounts.tokens import bearer_tokens
from QuizMaster.exceptions import ValidationError, NotFound, UnreadableContentError, UnsupportedType
from quiz import services
from quiz.llm_integration import (
    QuizQuestionGenerator, LangchainQuestionGenerator, GeneratorTimeout, GeneratorServiceError,
    fallback_questions, generate_questions,
)
from quiz.models import Quiz, Question, Option
from quiz.parsing import parse_questions, parse_direct, parse_bracketed, parse_fenced
from quiz.schemas import GeneratedQuestion, GenerationResult
from quiz.utils import LOADERS, handle_uploaded_file, extract_text


example_response_json = """[
  {
    "question": "What is the capital of France?",
    "options": ["London", "Paris", "New York", "Toulouse"],
    "correctAnswer": "Paris",
    "explanation": "Paris has been the capital since the 10th century."
  },
  {
    "question": "What is the official currency of Germany?",
    "options": ["Euro", "Dollar", "Deutschmark", "Pound"],
    "correctAnswer": "Euro"
  }
]"""

chatty_response = f"Sure! Here is your quiz:\n{example_response_json}\nGood luck with your studies."

fenced_response = f"Here you go.\n```json\n{example_response_json}\n```\nLet me know if you need more."


def make_questions(count=2):
    return [
        {
            "question": f"Question number {i}?",
            "options": [f"answer {i}-a", f"answer {i}-b", f"answer {i}-c", f"answer {i}-d"],
            "correctAnswer": f"answer {i}-b",
            "explanation": f"Because of {i}.",
        }
        for i in range(1, count + 1)
    ]


class FakeClient:
    """Stands in for the text generator: replays canned replies or errors."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.prompts = []

    def complete(self, prompt):
        self.prompts.append(prompt)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class MockLLMContent:
    def __init__(self, content):
        self.content = content


class ParserTestCase(TestCase):

    def test_direct_parse(self):
        questions = parse_direct(example_response_json)
        self.assertEqual(len(questions), 2)
        self.assertEqual(questions[0].correct_answer, "Paris")
        self.assertEqual(questions[1].explanation, "")

    def test_direct_parse_rejects_surrounding_text(self):
        self.assertIsNone(parse_direct(chatty_response))

    def test_bracketed_parse(self):
        questions = parse_bracketed(chatty_response)
        self.assertEqual([q.question for q in questions],
                         ["What is the capital of France?", "What is the official currency of Germany?"])

    def test_fenced_parse(self):
        questions = parse_fenced("```\nnot json\n```\n" + fenced_response)
        self.assertEqual(len(questions), 2)

    def test_parse_questions_uses_first_successful_strategy(self):
        with self.assertLogs("quiz_master", level="INFO") as logs:
            questions = parse_questions(chatty_response)

        self.assertEqual(len(questions), 2)
        self.assertTrue(any("bracketed" in line for line in logs.output))

    def test_empty_array_is_not_a_quiz(self):
        self.assertIsNone(parse_questions("[]"))

    def test_object_missing_correct_answer_is_rejected(self):
        raw = json.dumps([{"question": "Q?", "options": ["a", "b", "c", "d"]}])
        self.assertIsNone(parse_questions(raw))

    def test_array_of_non_objects_is_rejected(self):
        self.assertIsNone(parse_questions('["a", "b"]'))

    def test_unparseable_output(self):
        self.assertIsNone(parse_questions("I cannot help with that."))
        self.assertIsNone(parse_questions(""))

    def test_numeric_options_become_strings(self):
        raw = json.dumps([{"question": "1 + 1?", "options": [1, 2, 3, 4], "correctAnswer": 2}])
        questions = parse_questions(raw)
        self.assertEqual(questions[0].options, ["1", "2", "3", "4"])
        self.assertEqual(questions[0].correct_answer, "2")


class QuestionGeneratorTestCase(TestCase):

    def make_generator(self, *responses, **kwargs):
        client = FakeClient(*responses)
        sleep = Mock()
        generator = QuizQuestionGenerator(client=client, max_retries=kwargs.get("max_retries", 2),
                                          retry_delay=2, sleep=sleep)
        return generator, client, sleep

    def test_generate_success(self):
        generator, client, sleep = self.make_generator(example_response_json)

        result = generator.generate("Geography", "easy", 2)

        self.assertIsNone(result.warning)
        self.assertEqual(result.to_dict()["questions"][0]["correctAnswer"], "Paris")
        self.assertNotIn("warning", result.to_dict())
        self.assertIn("easy difficulty quiz about Geography with 2 multiple choice questions", client.prompts[0])
        self.assertFalse(sleep.called)

    def test_unparseable_output_falls_back(self):
        generator, client, sleep = self.make_generator("This is not JSON at all")

        result = generator.generate("Algebra", "medium", 5)

        self.assertEqual(len(result.questions), 5)
        self.assertEqual(result.warning, "Used default questions due to AI response parsing failure")
        self.assertEqual(result.questions[0].question, "What is a key feature of Algebra?")
        self.assertTrue(result.to_dict()["success"])

    def test_fallback_cycles_templates_as_advanced(self):
        questions = fallback_questions("Django", 7)

        self.assertEqual(len(questions), 7)
        self.assertFalse(questions[4].question.startswith("Advanced: "))
        self.assertEqual(questions[5].question, "Advanced: What is a key feature of Django?")
        self.assertEqual(questions[5].options, questions[0].options)
        self.assertEqual(questions[6].correct_answer, questions[1].correct_answer)
        self.assertTrue(questions[6].explanation.startswith("Advanced version of the explanation: "))

    def test_fallback_questions_have_four_options_including_answer(self):
        for question in fallback_questions("Rust", 10):
            self.assertEqual(len(question.options), 4)
            self.assertIn(question.correct_answer, question.options)

    def test_service_error_falls_back_with_reason(self):
        generator, client, sleep = self.make_generator(GeneratorServiceError("quota exceeded"))

        result = generator.generate("Algebra", "medium", 3)

        self.assertEqual(len(result.questions), 3)
        self.assertEqual(result.warning, "Used default questions due to error: quota exceeded")
        self.assertFalse(sleep.called)

    def test_timeout_is_retried_with_backoff(self):
        generator, client, sleep = self.make_generator(
            GeneratorTimeout("timed out"), GeneratorTimeout("timed out"), example_response_json)

        result = generator.generate("Geography", "medium", 2)

        self.assertIsNone(result.warning)
        self.assertEqual(len(client.prompts), 3)
        self.assertEqual([c.args[0] for c in sleep.call_args_list], [2, 4])

    def test_timeouts_exhaust_retries(self):
        generator, client, sleep = self.make_generator(
            GeneratorTimeout("t1"), GeneratorTimeout("t2"), GeneratorTimeout("t3"))

        result = generator.generate("Geography", "medium", 2)

        self.assertEqual(len(client.prompts), 3)
        self.assertEqual(result.warning, "Used default questions due to error: t3")

    def test_source_text_retried_without_it_when_unparseable(self):
        generator, client, sleep = self.make_generator("garbage", example_response_json)

        result = generator.generate("Geography", "medium", 2, source_text="Paris is the capital of France.")

        self.assertIsNone(result.warning)
        self.assertEqual(len(client.prompts), 2)
        self.assertIn("Paris is the capital of France.", client.prompts[0])
        self.assertNotIn("Paris is the capital of France.", client.prompts[1])

    def test_source_text_then_fallback(self):
        generator, client, sleep = self.make_generator("garbage", "more garbage")

        result = generator.generate("Geography", "medium", 4, source_text="Some notes about maps.")

        self.assertEqual(len(result.questions), 4)
        self.assertEqual(result.warning, "Used default questions due to AI response parsing failure")

    def test_generate_questions_uses_given_generator(self):
        generator, client, sleep = self.make_generator(fenced_response)

        result = generate_questions("Geography", "hard", 2, generator=generator)

        self.assertEqual(len(result.questions), 2)


class LangchainQuestionGeneratorTestCase(TestCase):

    def test_complete_returns_content(self):
        model = Mock()
        model.invoke.return_value = MockLLMContent(example_response_json)

        raw = LangchainQuestionGenerator(model=model).complete("prompt text")

        self.assertEqual(raw, example_response_json)
        model.invoke.assert_called_once_with("prompt text")

    def test_timeout_is_classified(self):
        model = Mock()
        model.invoke.side_effect = openai.APITimeoutError(
            request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))

        with self.assertRaises(GeneratorTimeout):
            LangchainQuestionGenerator(model=model).complete("prompt text")

    def test_other_errors_are_service_errors(self):
        model = Mock()
        model.invoke.side_effect = RuntimeError("boom")

        with self.assertRaises(GeneratorServiceError):
            LangchainQuestionGenerator(model=model).complete("prompt text")

    @override_settings(QUIZ_LLM_MODEL="gpt-4o-mini", OPEN_API_KEY="test-key")
    @patch("quiz.llm_integration.ChatOpenAI")
    def test_model_is_built_from_settings(self, chat_open_ai):
        chat_open_ai.return_value.invoke.return_value = MockLLMContent("[]")

        LangchainQuestionGenerator().complete("prompt text")

        kwargs = chat_open_ai.call_args[1]
        self.assertEqual(kwargs["model"], "gpt-4o-mini")
        self.assertEqual(kwargs["api_key"], "test-key")


class ContentExtractorTestCase(TestCase):

    def setUp(self):
        self.upload_dir = tempfile.mkdtemp()
        self.settings_override = override_settings(QUIZ_UPLOAD_DIR=self.upload_dir)
        self.settings_override.enable()

    def tearDown(self):
        self.settings_override.disable()
        shutil.rmtree(self.upload_dir, ignore_errors=True)

    def test_extract_text_from_txt(self):
        upload = SimpleUploadedFile("notes.txt", b"The mitochondria is the powerhouse of the cell.",
                                    content_type="text/plain")

        with handle_uploaded_file(upload) as file_path:
            self.assertTrue(os.path.exists(file_path))
            text = extract_text(file_path, "text/plain")

        self.assertIn("powerhouse", text)
        self.assertFalse(os.path.exists(file_path))
        self.assertEqual(os.listdir(self.upload_dir), [])

    def test_short_text_is_unreadable(self):
        upload = SimpleUploadedFile("notes.txt", b"   tiny  ", content_type="text/plain")

        with handle_uploaded_file(upload) as file_path:
            with self.assertRaises(UnreadableContentError):
                extract_text(file_path)

    def test_unsupported_type(self):
        upload = SimpleUploadedFile("data.csv", b"a,b,c\n1,2,3\n", content_type="text/csv")

        with handle_uploaded_file(upload) as file_path:
            with self.assertRaises(UnsupportedType):
                extract_text(file_path, "text/csv")

    def test_file_removed_when_block_raises(self):
        upload = SimpleUploadedFile("notes.txt", b"Some text that is long enough", content_type="text/plain")

        with self.assertRaises(RuntimeError):
            with handle_uploaded_file(upload) as file_path:
                raise RuntimeError("boom")

        self.assertFalse(os.path.exists(file_path))

    def test_partial_file_removed_when_write_fails(self):
        upload = SimpleUploadedFile("notes.txt", b"Some text that is long enough", content_type="text/plain")

        def chunks():
            yield b"Some text"
            raise OSError("No space left on device")

        with patch.object(upload, "chunks", side_effect=chunks):
            with self.assertRaises(OSError):
                with handle_uploaded_file(upload):
                    self.fail("block should not run when the upload cannot be written")

        self.assertEqual(os.listdir(self.upload_dir), [])

    def test_loader_failure_is_unreadable(self):
        pdf_loader = Mock()
        pdf_loader.return_value.load.side_effect = ValueError("broken xref table")
        upload = SimpleUploadedFile("paper.pdf", b"%PDF-1.4 not really", content_type="application/pdf")

        with patch.dict(LOADERS, {".pdf": pdf_loader}), handle_uploaded_file(upload) as file_path:
            with self.assertRaises(UnreadableContentError) as cm:
                extract_text(file_path)

        self.assertIn("broken xref table", cm.exception.message)


class QuizServiceTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.test_user = User.objects.create_user(username="owner@example.com", email="owner@example.com",
                                                 password="password")
        cls.random_user = User.objects.create_user(username="random@example.com", email="random@example.com",
                                                   password="random")

    def create(self, **overrides):
        data = {
            "title": "Capitals",
            "topic": "Geography",
            "quiz_settings": {"numQuestions": 2, "timeLimit": 10},
            "questions": make_questions(2),
        }
        data.update(overrides)
        return services.create_quiz(self.test_user, **data)

    def test_create_quiz_persists_aggregate(self):
        quiz = self.create(title="  Capitals  ")

        self.assertEqual(quiz.title, "Capitals")
        self.assertEqual(quiz.created_by_id, self.test_user.pk)
        self.assertEqual(Question.objects.filter(quiz=quiz).count(), 2)
        self.assertEqual(Option.objects.filter(question__quiz=quiz).count(), 8)

        for question in quiz.questions.all():
            self.assertEqual(question.options.count(), 4)
            self.assertEqual(question.options.filter(correct=True).count(), 1)
            self.assertEqual(question.correct_answer, f"answer {question.question_number}-b")

    def test_create_quiz_validation(self):
        bad_option_count = make_questions(1)
        bad_option_count[0]["options"] = ["a", "b", "c"]
        bad_option_count[0]["correctAnswer"] = "a"

        answer_not_an_option = make_questions(1)
        answer_not_an_option[0]["correctAnswer"] = "something else"

        duplicate_options = make_questions(1)
        duplicate_options[0]["options"] = ["a", "a", "b", "c"]
        duplicate_options[0]["correctAnswer"] = "a"

        cases = [
            ({"title": "   "}, "Title is required"),
            ({"topic": None}, "Topic is required"),
            ({"quiz_settings": {"numQuestions": 0, "timeLimit": 10}},
             "numQuestions must be an integer between 1 and 50"),
            ({"quiz_settings": {"numQuestions": 2, "timeLimit": 121}},
             "timeLimit must be an integer between 1 and 120"),
            ({"quiz_settings": {"numQuestions": True, "timeLimit": 10}},
             "numQuestions must be an integer between 1 and 50"),
            ({"questions": []}, "Quiz must have at least one question"),
            ({"questions": bad_option_count}, "Question 1: each question must have exactly 4 options"),
            ({"questions": answer_not_an_option}, "Question 1: correctAnswer must be one of the options"),
            ({"questions": duplicate_options}, "Question 1: options must be distinct"),
        ]

        for overrides, message in cases:
            with self.subTest(message=message):
                with self.assertRaises(ValidationError) as cm:
                    self.create(**overrides)
                self.assertEqual(cm.exception.message, message)

        self.assertEqual(Quiz.objects.count(), 0)

    def test_create_quiz_without_questions_generates_them(self):
        generator = QuizQuestionGenerator(client=FakeClient("not json"), max_retries=0, retry_delay=0)

        quiz = services.create_quiz(self.test_user, "Generated", "Algebra", {"numQuestions": 3, "timeLimit": 5},
                                    generator=generator)

        self.assertEqual(quiz.questions.count(), 3)
        self.assertEqual(quiz.questions.first().question_text, "What is a key feature of Algebra?")

    def test_get_quiz_is_stable(self):
        quiz = self.create()

        first = services.get_quiz(quiz.pk)
        second = services.get_quiz(quiz.pk)

        self.assertEqual(first, second)
        self.assertEqual([q.question_text for q in first.questions.all()],
                         [q.question_text for q in second.questions.all()])

    def test_get_missing_quiz(self):
        with self.assertRaises(NotFound):
            services.get_quiz(9999)

    def test_list_quizzes_by_user_newest_first(self):
        older = self.create(title="Older")
        Quiz.objects.filter(pk=older.pk).update(created_at=timezone.now() - timedelta(days=1))
        newer = self.create(title="Newer")
        services.create_quiz(self.random_user, "Someone else", "History", {"numQuestions": 1, "timeLimit": 5},
                             make_questions(1))

        self.assertEqual(list(services.list_quizzes_by_user(self.test_user)), [newer, older])
        self.assertEqual(services.list_quizzes().count(), 3)

    def test_update_quiz_by_owner(self):
        quiz = self.create()
        later = timezone.now() + timedelta(minutes=5)

        with patch("django.utils.timezone.now", return_value=later):
            updated = services.update_quiz(quiz.pk, self.test_user, {
                "title": "Capitals of Europe",
                "settings": {"timeLimit": 20},
                "questions": make_questions(3),
                "createdBy": self.random_user.pk,
            })

        self.assertEqual(updated.title, "Capitals of Europe")
        self.assertEqual(updated.time_limit, 20)
        self.assertEqual(updated.num_questions, 2)
        self.assertEqual(updated.created_by_id, self.test_user.pk)
        self.assertEqual(updated.questions.count(), 3)
        self.assertEqual(updated.updated_at, later)
        self.assertEqual(Option.objects.filter(question__quiz=quiz).count(), 12)

    def test_update_quiz_rejects_invalid_questions(self):
        quiz = self.create()

        with self.assertRaises(ValidationError):
            services.update_quiz(quiz.pk, self.test_user, {"questions": []})

    def test_update_quiz_by_non_owner(self):
        quiz = self.create()

        with self.assertRaises(NotFound):
            services.update_quiz(quiz.pk, self.random_user, {"title": "Hijacked"})

        self.assertEqual(services.get_quiz(quiz.pk).title, "Capitals")

    def test_delete_quiz_by_non_owner(self):
        quiz = self.create()

        with self.assertRaises(NotFound):
            services.delete_quiz(quiz.pk, self.random_user)

        self.assertEqual(services.get_quiz(quiz.pk).pk, quiz.pk)

    def test_delete_quiz_by_owner_removes_questions(self):
        quiz = self.create()

        services.delete_quiz(quiz.pk, self.test_user)

        self.assertFalse(Quiz.objects.filter(pk=quiz.pk).exists())
        self.assertEqual(Question.objects.count(), 0)
        self.assertEqual(Option.objects.count(), 0)


class FileQuizServiceTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.test_user = User.objects.create_user(username="owner@example.com", email="owner@example.com",
                                                 password="password")

    def setUp(self):
        self.upload_dir = tempfile.mkdtemp()
        self.settings_override = override_settings(QUIZ_UPLOAD_DIR=self.upload_dir)
        self.settings_override.enable()

    def tearDown(self):
        self.settings_override.disable()
        shutil.rmtree(self.upload_dir, ignore_errors=True)

    def test_create_quiz_from_file(self):
        client = FakeClient(example_response_json)
        generator = QuizQuestionGenerator(client=client, max_retries=0, retry_delay=0)
        upload = SimpleUploadedFile("notes.txt", b"Paris is the capital of France. Germany uses the Euro.",
                                    content_type="text/plain")

        quiz, warning = services.create_quiz_from_file(self.test_user, "Notes", "Europe", 2, upload,
                                                       generator=generator)

        self.assertIsNone(warning)
        self.assertEqual(quiz.time_limit, 30)
        self.assertEqual(quiz.num_questions, 2)
        self.assertEqual(quiz.questions.count(), 2)
        self.assertIn("Germany uses the Euro.", client.prompts[0])
        self.assertEqual(os.listdir(self.upload_dir), [])

    def test_unreadable_file_is_removed(self):
        generator = Mock()
        upload = SimpleUploadedFile("notes.txt", b"short", content_type="text/plain")

        with self.assertRaises(UnreadableContentError):
            services.create_quiz_from_file(self.test_user, "Notes", "Europe", 2, upload, generator=generator)

        self.assertFalse(generator.generate.called)
        self.assertEqual(os.listdir(self.upload_dir), [])
        self.assertEqual(Quiz.objects.count(), 0)


class QuizViewTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.test_user = User.objects.create_user(username="owner@example.com", email="owner@example.com",
                                                 password="password")
        cls.random_user = User.objects.create_user(username="random@example.com", email="random@example.com",
                                                   password="random")
        cls.test_quiz = services.create_quiz(cls.test_user, "test title", "testing",
                                             {"numQuestions": 3, "timeLimit": 10}, make_questions(3))

    def setUp(self):
        # Every test needs a client.
        self.authenticated_client = Client(HTTP_AUTHORIZATION=f"Bearer {bearer_tokens.issue(self.test_user)}")
        self.random_client = Client(HTTP_AUTHORIZATION=f"Bearer {bearer_tokens.issue(self.random_user)}")
        self.unauthenticated_client = Client()

    def post_json(self, client, url, data, method="post"):
        return getattr(client, method)(url, data=json.dumps(data), content_type="application/json")

    def test_unauthenticated_client_list_quizzes(self):
        response = self.unauthenticated_client.get("/api/quizzes/")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"message": "Authentication required"})

    def test_bad_token_list_quizzes(self):
        client = Client(HTTP_AUTHORIZATION="Bearer not-a-real-token")
        response = client.get("/api/quizzes/")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"message": "Authentication failed"})

    def test_list_all_quizzes(self):
        response = self.random_client.get("/api/quizzes/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual([quiz["id"] for quiz in response.json()], [self.test_quiz.pk])

    def test_list_user_quizzes(self):
        response = self.random_client.get("/api/quizzes/user")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), [])

        response = self.authenticated_client.get("/api/quizzes/user")
        self.assertEqual(len(response.json()), 1)

    def test_get_quiz_detail(self):
        response = self.random_client.get(f"/api/quizzes/{self.test_quiz.pk}")

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["title"], "test title")
        self.assertEqual(data["settings"], {"numQuestions": 3, "timeLimit": 10})
        self.assertEqual(data["createdBy"], self.test_user.pk)
        self.assertEqual(data["questions"][0]["options"], ["answer 1-a", "answer 1-b", "answer 1-c", "answer 1-d"])
        self.assertEqual(data["questions"][0]["correctAnswer"], "answer 1-b")

    def test_get_missing_quiz(self):
        response = self.authenticated_client.get("/api/quizzes/9999")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"message": "Quiz not found"})

    def test_create_quiz(self):
        response = self.post_json(self.authenticated_client, "/api/quizzes/", {
            "title": "New quiz",
            "topic": "Science",
            "settings": {"numQuestions": 2, "timeLimit": 5},
            "questions": make_questions(2),
        })

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["title"], "New quiz")
        self.assertEqual(len(response.json()["questions"]), 2)

    def test_create_quiz_invalid(self):
        response = self.post_json(self.authenticated_client, "/api/quizzes/", {
            "title": "New quiz",
            "topic": "Science",
            "settings": {"numQuestions": 2, "timeLimit": 5},
            "questions": [],
        })

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"message": "Quiz must have at least one question"})

    def test_create_quiz_invalid_json(self):
        response = self.authenticated_client.post("/api/quizzes/", data="{not json", content_type="application/json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"message": "Invalid JSON"})

    def test_update_quiz(self):
        response = self.post_json(self.authenticated_client, f"/api/quizzes/{self.test_quiz.pk}",
                                  {"topic": "updated topic"}, method="put")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["topic"], "updated topic")

    def test_update_quiz_non_owner(self):
        response = self.post_json(self.random_client, f"/api/quizzes/{self.test_quiz.pk}",
                                  {"topic": "updated topic"}, method="put")

        self.assertEqual(response.status_code, 404)

    def test_delete_quiz_non_owner(self):
        response = self.random_client.delete(f"/api/quizzes/{self.test_quiz.pk}")

        self.assertEqual(response.status_code, 404)
        self.assertTrue(Quiz.objects.filter(pk=self.test_quiz.pk).exists())

    def test_delete_quiz(self):
        response = self.authenticated_client.delete(f"/api/quizzes/{self.test_quiz.pk}")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"message": "Quiz deleted successfully"})
        self.assertFalse(Quiz.objects.filter(pk=self.test_quiz.pk).exists())

    @patch("quiz.views.generate_questions")
    def test_generate_quiz(self, mock_generate):
        mock_generate.return_value = GenerationResult(
            questions=[GeneratedQuestion.model_validate(q) for q in json.loads(example_response_json)],
            warning=None,
        )

        response = self.post_json(self.authenticated_client, "/api/quizzes/ai/generate-quiz",
                                  {"topic": "Geography", "numQuestions": 2})

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["success"])
        self.assertEqual(len(response.json()["questions"]), 2)
        mock_generate.assert_called_once_with("Geography", "medium", 2)

    @patch("quiz.views.generate_questions")
    def test_generate_quiz_missing_topic(self, mock_generate):
        response = self.post_json(self.authenticated_client, "/api/quizzes/ai/generate-quiz", {"numQuestions": 2})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"message": "Topic is required"})
        self.assertFalse(mock_generate.called)

    def test_generate_quiz_get_not_allowed(self):
        response = self.authenticated_client.get("/api/quizzes/ai/generate-quiz")
        self.assertEqual(response.status_code, 405)

    def test_upload_invalid_file_type(self):
        upload = SimpleUploadedFile("data.csv", b"a,b,c", content_type="text/csv")

        response = self.authenticated_client.post("/api/quizzes/upload", {
            "title": "From CSV", "topic": "Data", "numQuestions": 2, "file": upload,
        })

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(),
                         {"message": "Invalid file type. Only PDF, TXT, and Word documents are allowed."})

    def test_upload_missing_title(self):
        upload = SimpleUploadedFile("notes.txt", b"Some notes long enough to use", content_type="text/plain")

        response = self.authenticated_client.post("/api/quizzes/upload", {"topic": "Data", "file": upload})

        self.assertEqual(response.status_code, 400)
        self.assertIn("title", response.json()["errors"])

    @patch("quiz.services.generate_questions")
    def test_upload_quiz(self, mock_generate):
        mock_generate.return_value = GenerationResult(
            questions=fallback_questions("Europe", 2),
            warning="Used default questions due to AI response parsing failure",
        )
        upload = SimpleUploadedFile("notes.txt", b"Paris is the capital of France.", content_type="text/plain")

        with tempfile.TemporaryDirectory() as upload_dir, override_settings(QUIZ_UPLOAD_DIR=upload_dir):
            response = self.authenticated_client.post("/api/quizzes/upload", {
                "title": "Notes", "topic": "Europe", "numQuestions": 2, "file": upload,
            })
            self.assertEqual(os.listdir(upload_dir), [])

        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data["settings"], {"numQuestions": 2, "timeLimit": 30})
        self.assertEqual(data["warning"], "Used default questions due to AI response parsing failure")
        self.assertEqual(mock_generate.call_args[1]["source_text"], "Paris is the capital of France.")
