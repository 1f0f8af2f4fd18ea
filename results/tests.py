import json
from datetime import timedelta

from django.contrib.auth.models import User
from django.test import TestCase, Client, override_settings
from django.utils import timezone

from accounts.tokens import bearer_tokens
from QuizMaster.exceptions import ValidationError, NotFound
from quiz import services as quiz_services
from quiz.models import Quiz
from results import services
from results.models import QuizResult, ResultAnswer


def make_questions(count):
    return [
        {
            "question": f"Question {i}?",
            "options": [f"q{i} a", f"q{i} b", f"q{i} c", f"q{i} d"],
            "correctAnswer": f"q{i} a",
        }
        for i in range(1, count + 1)
    ]


def make_answers(*picks):
    return [
        {
            "question": f"Question {i}?",
            "userAnswer": pick,
            "correctAnswer": f"q{i} a",
            "isCorrect": pick == f"q{i} a",
        }
        for i, pick in enumerate(picks, start=1)
    ]


class ResultServiceTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.test_user = User.objects.create_user(username="taker@example.com", email="taker@example.com",
                                                 password="password")
        cls.random_user = User.objects.create_user(username="random@example.com", email="random@example.com",
                                                   password="random")
        cls.test_quiz = quiz_services.create_quiz(cls.test_user, "Three", "Maths",
                                                  {"numQuestions": 3, "timeLimit": 5}, make_questions(3))

    def test_submit_attempt(self):
        result = services.submit_attempt(self.test_user, self.test_quiz.pk, make_answers("q1 a", "q2 b", "q3 a"), 95)

        self.assertEqual(result.score, 2)
        self.assertEqual(result.total_questions, 3)
        self.assertEqual(result.time_taken, 95)
        self.assertEqual(result.answers.count(), 3)
        self.assertEqual([a.user_answer for a in result.answers.all()], ["q1 a", "q2 b", "q3 a"])

    def test_score_counts_is_correct_flags(self):
        answers = make_answers("q1 b", "q2 b", "q3 b")
        answers[0]["isCorrect"] = True

        result = services.submit_attempt(self.test_user, self.test_quiz.pk, answers, 10)

        self.assertEqual(result.score, 1)
        self.assertLessEqual(result.score, result.total_questions)
        self.assertEqual(result.score, result.answers.filter(is_correct=True).count())

    @override_settings(QUIZ_RESULTS_RECOMPUTE_CORRECTNESS=True)
    def test_recompute_correctness_from_stored_quiz(self):
        answers = make_answers("q1 b", "q2 a", "q3 a")
        answers[0]["isCorrect"] = True
        answers[1]["correctAnswer"] = "q2 b"
        answers[1]["isCorrect"] = False

        result = services.submit_attempt(self.test_user, self.test_quiz.pk, answers, 10)

        self.assertEqual(result.score, 2)
        self.assertEqual([a.is_correct for a in result.answers.all()], [False, True, True])
        self.assertEqual(result.answers.all()[1].correct_answer, "q2 a")

    def test_empty_user_answer_is_stored(self):
        answers = make_answers("", "", "")

        result = services.submit_attempt(self.test_user, self.test_quiz.pk, answers, 300)

        self.assertEqual(result.score, 0)
        self.assertEqual(result.answers.filter(user_answer="").count(), 3)

    def test_empty_answer_list_is_stored_with_zero_score(self):
        result = services.submit_attempt(self.test_user, self.test_quiz.pk, [], 4)

        self.assertEqual(result.score, 0)
        self.assertEqual(result.total_questions, 0)
        self.assertEqual(result.percentage, 0)
        self.assertEqual(result.answers.count(), 0)

        services.submit_attempt(self.test_user, self.test_quiz.pk, make_answers("q1 a", "q2 a", "q3 a"), 10)
        self.assertEqual(services.analytics_for_user(self.test_user)["averageScorePercent"], 50)

    def test_submit_validation(self):
        cases = [
            ({"answers": None}, "Answers are required"),
            ({"answers": "q1 a"}, "Answers must be a list"),
            ({"quiz_id": 9999}, "Quiz not found"),
            ({"quiz_id": "abc"}, "Quiz not found"),
            ({"quiz_id": self.test_quiz.pk + 0.9}, "Quiz not found"),
            ({"quiz_id": str(self.test_quiz.pk)}, "Quiz not found"),
            ({"quiz_id": True}, "Quiz not found"),
            ({"time_taken": -1}, "timeTaken must be a non-negative integer"),
            ({"time_taken": "60"}, "timeTaken must be a non-negative integer"),
            ({"answers": [{"userAnswer": "x"}]}, "Answer 1: question is required"),
        ]

        for overrides, message in cases:
            with self.subTest(message=message):
                kwargs = {"quiz_id": self.test_quiz.pk, "answers": make_answers("q1 a", "q2 a", "q3 a"),
                          "time_taken": 10}
                kwargs.update(overrides)
                with self.assertRaises(ValidationError) as cm:
                    services.submit_attempt(self.test_user, **kwargs)
                self.assertEqual(cm.exception.message, message)

        self.assertEqual(QuizResult.objects.count(), 0)

    def test_list_for_user_newest_first(self):
        first = services.submit_attempt(self.test_user, self.test_quiz.pk, make_answers("q1 a", "", ""), 10)
        QuizResult.objects.filter(pk=first.pk).update(created_at=timezone.now() - timedelta(hours=1))
        second = services.submit_attempt(self.test_user, self.test_quiz.pk, make_answers("q1 a", "q2 a", ""), 10)
        services.submit_attempt(self.random_user, self.test_quiz.pk, make_answers("", "", ""), 10)

        self.assertEqual(services.list_for_user(self.test_user), [second, first])

    def test_get_by_id_is_scoped_to_user(self):
        result = services.submit_attempt(self.test_user, self.test_quiz.pk, make_answers("q1 a", "", ""), 10)

        self.assertEqual(services.get_by_id(result.pk, self.test_user), result)
        with self.assertRaises(NotFound):
            services.get_by_id(result.pk, self.random_user)

    def test_analytics_without_results(self):
        data = services.analytics_for_user(self.random_user)

        self.assertEqual(data["averageScorePercent"], 0)
        self.assertEqual(data["totalAttempts"], 0)
        self.assertEqual(data["totalQuizzes"], 0)
        self.assertEqual(data["scoreOverTime"], [])
        self.assertEqual(data["recentScores"], [])

    def test_analytics(self):
        quiz_services.create_quiz(self.test_user, "Another", "Maths", {"numQuestions": 1, "timeLimit": 5},
                                  make_questions(1))
        quiz_services.create_quiz(self.test_user, "History", "History", {"numQuestions": 1, "timeLimit": 5},
                                  make_questions(1))

        older = services.submit_attempt(self.test_user, self.test_quiz.pk, make_answers("q1 a", "q2 a", "q3 a"), 10)
        QuizResult.objects.filter(pk=older.pk).update(created_at=timezone.now() - timedelta(days=1))
        newer = services.submit_attempt(self.test_user, self.test_quiz.pk, make_answers("q1 a", "", ""), 10)

        data = services.analytics_for_user(self.test_user)

        self.assertEqual(data["averageScorePercent"], round((100 + 100 / 3) / 2, 2))
        self.assertEqual(data["totalQuizzes"], 3)
        self.assertEqual(data["totalAttempts"], 2)
        self.assertEqual(data["topicDistribution"], [{"topic": "Maths", "count": 2}, {"topic": "History", "count": 1}])
        self.assertEqual([point["resultId"] for point in data["scoreOverTime"]], [older.pk, newer.pk])
        self.assertEqual(data["scoreOverTime"][0]["percentage"], 100)
        self.assertEqual(data["recentScores"][0]["resultId"], newer.pk)
        self.assertEqual(data["recentScores"][0]["quizTitle"], "Three")

    def test_results_survive_quiz_deletion(self):
        result = services.submit_attempt(self.test_user, self.test_quiz.pk, make_answers("q1 a", "", ""), 10)

        quiz_services.delete_quiz(self.test_quiz.pk, self.test_user)

        self.assertTrue(QuizResult.objects.filter(pk=result.pk).exists())
        self.assertEqual(services.quizzes_for_results([result]), {})
        self.assertIsNone(services.analytics_for_user(self.test_user)["recentScores"][0]["quizTitle"])


class ResultViewTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.test_user = User.objects.create_user(username="taker@example.com", email="taker@example.com",
                                                 password="password")
        cls.random_user = User.objects.create_user(username="random@example.com", email="random@example.com",
                                                   password="random")
        cls.test_quiz = quiz_services.create_quiz(cls.test_user, "Three", "Maths",
                                                  {"numQuestions": 3, "timeLimit": 5}, make_questions(3))

    def setUp(self):
        self.authenticated_client = Client(HTTP_AUTHORIZATION=f"Bearer {bearer_tokens.issue(self.test_user)}")
        self.random_client = Client(HTTP_AUTHORIZATION=f"Bearer {bearer_tokens.issue(self.random_user)}")

    def submit(self, client, data):
        return client.post("/api/quiz-results/", data=json.dumps(data), content_type="application/json")

    def test_submit_result(self):
        response = self.submit(self.authenticated_client, {
            "quizId": self.test_quiz.pk,
            "answers": make_answers("q1 a", "q2 c", "q3 a"),
            "timeTaken": 120,
        })

        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data["score"], 2)
        self.assertEqual(data["totalQuestions"], 3)
        self.assertEqual(data["timeTaken"], 120)
        self.assertEqual(data["quiz"]["title"], "Three")
        self.assertEqual(data["answers"][1], {"question": "Question 2?", "userAnswer": "q2 c",
                                              "correctAnswer": "q2 a", "isCorrect": False})

    def test_submit_result_without_answers(self):
        response = self.submit(self.authenticated_client, {"quizId": self.test_quiz.pk, "timeTaken": 120})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"message": "Answers are required"})

    def test_list_and_detail(self):
        result = services.submit_attempt(self.test_user, self.test_quiz.pk, make_answers("q1 a", "", ""), 10)

        response = self.authenticated_client.get("/api/quiz-results/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual([item["id"] for item in response.json()], [result.pk])

        response = self.authenticated_client.get(f"/api/quiz-results/{result.pk}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["score"], 1)

        response = self.random_client.get(f"/api/quiz-results/{result.pk}")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"message": "Result not found"})

    def test_detail_after_quiz_deleted(self):
        result = services.submit_attempt(self.test_user, self.test_quiz.pk, make_answers("q1 a", "", ""), 10)
        Quiz.objects.filter(pk=self.test_quiz.pk).delete()

        response = self.authenticated_client.get(f"/api/quiz-results/{result.pk}")

        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.json()["quiz"])
        self.assertEqual(ResultAnswer.objects.filter(result=result).count(), 3)

    def test_analytics(self):
        response = self.random_client.get("/api/quiz-results/analytics")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["averageScorePercent"], 0)

    def test_unauthenticated(self):
        response = Client().get("/api/quiz-results/analytics")
        self.assertEqual(response.status_code, 401)
