import json
from unittest.mock import patch, Mock

from django.contrib.auth.models import User
from django.db import DatabaseError
from django.test import TestCase, Client

from accounts.tokens import bearer_tokens
from attempts.session import AttemptState, AttemptStatus, QuizSessionEngine, build_answers
from QuizMaster.exceptions import AttemptStateError, EmptyQuiz, NotFound, UpstreamFailure, ValidationError
from quiz import services as quiz_services
from quiz.models import Quiz
from results.models import QuizResult


def make_questions(count):
    return [
        {
            "question": f"Question {i}?",
            "options": [f"q{i} a", f"q{i} b", f"q{i} c", f"q{i} d"],
            "correctAnswer": f"q{i} a",
        }
        for i in range(1, count + 1)
    ]


class SessionEngineTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.test_user = User.objects.create_user(username="taker@example.com", email="taker@example.com",
                                                 password="password")
        cls.five_question_quiz = quiz_services.create_quiz(
            cls.test_user, "Five", "Timing", {"numQuestions": 5, "timeLimit": 1}, make_questions(5))
        cls.three_question_quiz = quiz_services.create_quiz(
            cls.test_user, "Three", "Scoring", {"numQuestions": 3, "timeLimit": 10}, make_questions(3))

    def setUp(self):
        self.submitted = []
        self.engine = QuizSessionEngine(load_quiz=quiz_services.get_quiz, submit_result=self.submit)

    def submit(self, quiz_id, answers, time_taken):
        self.submitted.append((quiz_id, answers, time_taken))
        return 42

    def test_start(self):
        state = self.engine.start(self.three_question_quiz.pk)

        self.assertEqual(state.status, AttemptStatus.IN_PROGRESS)
        self.assertEqual(state.question_index, 0)
        self.assertEqual(state.elapsed_seconds, 0)
        self.assertEqual(state.answers, [])
        self.assertEqual(state.time_limit_seconds, 600)
        self.assertEqual(state.current_question.question, "Question 1?")
        self.assertEqual(state.current_question.correct_answer, "q1 a")

    def test_start_missing_quiz(self):
        with self.assertRaises(NotFound):
            self.engine.start(9999)

    def test_start_empty_quiz(self):
        empty = Quiz.objects.create(title="Empty", topic="Nothing", num_questions=1, time_limit=1,
                                    created_by=self.test_user)

        with self.assertRaises(EmptyQuiz):
            self.engine.start(empty.pk)

    def test_time_expiry_with_nothing_answered(self):
        state = self.engine.start(self.five_question_quiz.pk)

        for _ in range(60):
            if state.status != AttemptStatus.IN_PROGRESS:
                break
            state = self.engine.tick(state)

        self.assertEqual(state.status, AttemptStatus.COMPLETED)
        self.assertEqual(state.elapsed_seconds, 60)
        self.assertEqual(state.score, 0)
        self.assertEqual(state.result_id, 42)

        quiz_id, answers, time_taken = self.submitted[0]
        self.assertEqual(quiz_id, self.five_question_quiz.pk)
        self.assertEqual(time_taken, 60)
        self.assertEqual(len(answers), 5)
        for answer in answers:
            self.assertEqual(answer["userAnswer"], "")
            self.assertFalse(answer["isCorrect"])

    def test_tick_many_seconds_stops_at_limit(self):
        state = self.engine.start(self.five_question_quiz.pk)
        state = self.engine.answer(state, "q1 a")

        state = self.engine.tick(state, 500)

        self.assertEqual(state.status, AttemptStatus.COMPLETED)
        self.assertEqual(state.elapsed_seconds, 60)
        self.assertEqual(state.score, 1)
        self.assertEqual(len(self.submitted), 1)

    def test_full_completion(self):
        state = self.engine.start(self.three_question_quiz.pk)
        state = self.engine.tick(state, 15)

        state = self.engine.answer(state, "q1 a")
        state = self.engine.answer(state, "q2 c")
        self.assertEqual(state.status, AttemptStatus.IN_PROGRESS)
        state = self.engine.answer(state, "q3 a")

        self.assertEqual(state.status, AttemptStatus.COMPLETED)
        self.assertEqual(state.score, 2)

        quiz_id, answers, time_taken = self.submitted[0]
        self.assertEqual(len(answers), 3)
        self.assertEqual(time_taken, 15)
        self.assertEqual([answer["isCorrect"] for answer in answers], [True, False, True])
        self.assertEqual([answer["question"] for answer in answers], ["Question 1?", "Question 2?", "Question 3?"])

    def test_scoring_is_case_sensitive(self):
        state = self.engine.start(self.three_question_quiz.pk)
        state.answers = [{"questionId": state.questions[0].id, "answer": "Q1 A"}]

        answers = build_answers(state)

        self.assertFalse(answers[0]["isCorrect"])

    def test_answer_requires_selection(self):
        state = self.engine.start(self.three_question_quiz.pk)

        for selected in (None, ""):
            with self.subTest(selected=selected):
                with self.assertRaises(AttemptStateError):
                    self.engine.answer(state, selected)

        self.assertEqual(state.answers, [])

    def test_answer_after_completion_is_rejected(self):
        state = self.engine.start(self.three_question_quiz.pk)
        for selected in ("q1 a", "q2 a", "q3 a"):
            state = self.engine.answer(state, selected)

        with self.assertRaises(AttemptStateError):
            self.engine.answer(state, "q1 a")
        with self.assertRaises(AttemptStateError):
            self.engine.tick(state)

    def test_failed_submission_can_be_retried(self):
        submit = Mock(side_effect=[UpstreamFailure("database is locked"), 7])
        engine = QuizSessionEngine(load_quiz=quiz_services.get_quiz, submit_result=submit)

        state = engine.start(self.three_question_quiz.pk)
        for selected in ("q1 a", "q2 a", "q3 b"):
            state = engine.answer(state, selected)

        self.assertEqual(state.status, AttemptStatus.FAILED)
        self.assertEqual(state.error, "The service is temporarily unavailable. Please try again.")
        self.assertEqual(len(state.answers), 3)

        state = engine.complete(state)

        self.assertEqual(state.status, AttemptStatus.COMPLETED)
        self.assertEqual(state.result_id, 7)
        self.assertIsNone(state.error)
        self.assertEqual(submit.call_args_list[0], submit.call_args_list[1])

    def test_complete_requires_completing_state(self):
        state = self.engine.start(self.three_question_quiz.pk)

        with self.assertRaises(AttemptStateError):
            self.engine.complete(state)

    def test_state_round_trips_through_the_caller(self):
        state = self.engine.start(self.three_question_quiz.pk)
        state = self.engine.answer(state, "q1 a")

        restored = AttemptState.from_dict(json.loads(json.dumps(state.to_dict())))

        self.assertEqual(restored, state)

    def test_malformed_state(self):
        with self.assertRaises(ValidationError):
            AttemptState.from_dict({"quizId": 1, "status": "dancing", "questions": [], "timeLimitSeconds": 60})

    def test_state_with_out_of_range_time_limit_is_rejected(self):
        state = self.engine.start(self.three_question_quiz.pk).to_dict()

        for time_limit in (10 ** 12, 0, 59, 120 * 60 + 1):
            with self.subTest(time_limit=time_limit):
                state["timeLimitSeconds"] = time_limit
                with self.assertRaises(ValidationError) as cm:
                    AttemptState.from_dict(state)
                self.assertEqual(cm.exception.message, "Invalid attempt state")

    def test_huge_tick_jumps_straight_to_the_limit(self):
        state = self.engine.start(self.three_question_quiz.pk)
        state.time_limit_seconds = 10 ** 12

        state = self.engine.tick(state, 10 ** 12 - 1)

        self.assertEqual(state.status, AttemptStatus.IN_PROGRESS)
        self.assertEqual(state.elapsed_seconds, 10 ** 12 - 1)

        state = self.engine.tick(state, 10 ** 12)

        self.assertEqual(state.status, AttemptStatus.COMPLETED)
        self.assertEqual(state.elapsed_seconds, 10 ** 12)
        self.assertEqual(self.submitted[0][2], 10 ** 12)

    def test_answer_must_be_one_of_the_options(self):
        state = self.engine.start(self.three_question_quiz.pk)

        with self.assertRaises(AttemptStateError) as cm:
            self.engine.answer(state, "not an option")

        self.assertEqual(cm.exception.message, "The answer must be one of the question's options")
        self.assertEqual(state.answers, [])
        self.assertEqual(state.question_index, 0)


class AttemptViewTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.test_user = User.objects.create_user(username="taker@example.com", email="taker@example.com",
                                                 password="password")
        cls.test_quiz = quiz_services.create_quiz(
            cls.test_user, "Two", "Views", {"numQuestions": 2, "timeLimit": 1}, make_questions(2))

    def setUp(self):
        self.authenticated_client = Client(HTTP_AUTHORIZATION=f"Bearer {bearer_tokens.issue(self.test_user)}")

    def post_json(self, url, data):
        return self.authenticated_client.post(url, data=json.dumps(data), content_type="application/json")

    def test_unauthenticated_start(self):
        response = Client().post("/api/attempts/start", data=json.dumps({"quizId": self.test_quiz.pk}),
                                 content_type="application/json")
        self.assertEqual(response.status_code, 401)

    def test_take_quiz_end_to_end(self):
        response = self.post_json("/api/attempts/start", {"quizId": self.test_quiz.pk})
        self.assertEqual(response.status_code, 200)
        state = response.json()
        self.assertEqual(state["status"], "in_progress")

        state = self.post_json("/api/attempts/tick", {"state": state, "seconds": 12}).json()
        self.assertEqual(state["remainingSeconds"], 48)

        state = self.post_json("/api/attempts/answer", {"state": state, "answer": "q1 a"}).json()
        state = self.post_json("/api/attempts/answer", {"state": state, "answer": "q2 b"}).json()

        self.assertEqual(state["status"], "completed")
        self.assertEqual(state["score"], 1)

        result = QuizResult.objects.get(pk=state["resultId"])
        self.assertEqual(result.user_id, self.test_user.pk)
        self.assertEqual(result.score, 1)
        self.assertEqual(result.total_questions, 2)
        self.assertEqual(result.time_taken, 12)

    def test_start_missing_quiz(self):
        response = self.post_json("/api/attempts/start", {"quizId": 9999})
        self.assertEqual(response.status_code, 404)

    def test_answer_without_selection(self):
        state = self.post_json("/api/attempts/start", {"quizId": self.test_quiz.pk}).json()

        response = self.post_json("/api/attempts/answer", {"state": state})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"message": "An answer must be selected"})

    def test_forged_time_limit_is_rejected(self):
        state = self.post_json("/api/attempts/start", {"quizId": self.test_quiz.pk}).json()
        state["timeLimitSeconds"] = 10 ** 12

        response = self.post_json("/api/attempts/tick", {"state": state, "seconds": 10 ** 12})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"message": "Invalid attempt state"})
        self.assertEqual(QuizResult.objects.count(), 0)

    def test_missing_state(self):
        response = self.post_json("/api/attempts/tick", {"seconds": 1})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"message": "Attempt state is required"})

    @patch("attempts.views.submit_attempt", side_effect=DatabaseError("disk I/O error"))
    def test_storage_failure_leaves_attempt_failed(self, mock_submit):
        state = self.post_json("/api/attempts/start", {"quizId": self.test_quiz.pk}).json()

        state = self.post_json("/api/attempts/tick", {"state": state, "seconds": 60}).json()

        self.assertEqual(state["status"], "failed")
        self.assertEqual(state["error"], "The service is temporarily unavailable. Please try again.")
        self.assertEqual(QuizResult.objects.count(), 0)

        mock_submit.side_effect = None
        mock_submit.return_value = Mock(pk=99)

        state = self.post_json("/api/attempts/complete", {"state": state}).json()

        self.assertEqual(state["status"], "completed")
        self.assertEqual(state["resultId"], 99)
