"""Tests for the SparkIQ endpoints with a fake Gemini client."""

from __future__ import annotations

import json

import pytest

from neurolearn.gemini_client import GeminiError


def _quiz_questions(n: int, options: int = 4) -> list:
	return [
		{"question": f"Q{i}?", "options": [f"o{j}" for j in range(options)], "correctAnswerIndex": 1}
		for i in range(n)
	]


CHALLENGE = {"title": "Bridge", "description": "Cross it", "task": "Plan the crossing", "suggestedTime": 10}


@pytest.mark.parametrize("category", ["Puzzle", "Debate", "Try & Analyze"])
def test_challenge_category_is_set_by_server(client, fake_gemini, category):
	fake_gemini.responses.append(json.dumps({**CHALLENGE, "category": "Something else"}))
	r = client.post("/sparkiq/challenge", json={"category": category, "difficulty": "Hard"})
	assert r.status_code == 200
	body = r.json()
	assert body["category"] == category
	assert body["suggestedTime"] == 10
	assert '"Hard"' in fake_gemini.calls[0]["prompt"]


def test_challenge_rejects_unknown_category(client, fake_gemini):
	r = client.post("/sparkiq/challenge", json={"category": "Jam"})
	assert r.status_code == 422


def test_custom_challenge_uses_user_prompt(client, fake_gemini):
	fake_gemini.responses.append(json.dumps(CHALLENGE))
	r = client.post("/sparkiq/challenge/custom", json={"category": "Design Task", "prompt": "a school garden"})
	assert r.status_code == 200
	assert r.json()["category"] == "Design Task"
	assert "a school garden" in fake_gemini.calls[0]["prompt"]


def test_odd_one_out(client, fake_gemini):
	fake_gemini.responses.append(
		json.dumps({"title": "Which one?", "task": "Pick one", "items": ["a", "b", "c", "d"], "suggestedTime": 3})
	)
	r = client.post("/sparkiq/challenge/odd-one-out")
	assert r.status_code == 200
	body = r.json()
	assert body["category"] == "Odd-One-Out"
	assert body["items"] == ["a", "b", "c", "d"]
	assert body["description"] == ""


def test_odd_one_out_wrong_item_count_is_502(client, fake_gemini):
	fake_gemini.responses.append(
		json.dumps({"title": "Which one?", "task": "Pick one", "items": ["a", "b", "c"], "suggestedTime": 3})
	)
	r = client.post("/sparkiq/challenge/odd-one-out")
	assert r.status_code == 502
	assert r.json()["detail"] == "Failed to generate an Odd-One-Out challenge."


def test_image_puzzle(client, fake_gemini):
	fake_gemini.responses.append("Concept: a metal knight. Solution: heavy metal.")
	fake_gemini.images.append("data:image/png;base64,XYZ")
	r = client.post("/sparkiq/challenge/image-puzzle")
	assert r.status_code == 200
	body = r.json()
	assert body["category"] == "Image Puzzle"
	assert body["imageUrl"] == "data:image/png;base64,XYZ"
	assert "metal knight" in fake_gemini.calls[1]["prompt"]


def test_image_puzzle_render_failure_is_502(client, fake_gemini):
	fake_gemini.responses.append("Concept: something")
	fake_gemini.images.append(GeminiError("no image"))
	r = client.post("/sparkiq/challenge/image-puzzle")
	assert r.status_code == 502


def test_listening_practice(client, fake_gemini):
	fake_gemini.responses.append(
		json.dumps({"title": "The Lost Key", "story": "Once...", "questions": _quiz_questions(3)})
	)
	r = client.post("/sparkiq/challenge/listening")
	assert r.status_code == 200
	body = r.json()
	assert body["category"] == "Listening Practice"
	assert body["suggestedTime"] == 0
	assert body["task"] == "Listen to the story and answer the questions that follow."
	assert body["questions"][2]["correctAnswerIndex"] == 1


def test_quiz(client, fake_gemini):
	fake_gemini.responses.append("Here's your quiz!\n" + json.dumps(_quiz_questions(5)) + "\nGood luck!")
	r = client.post("/sparkiq/quiz", json={"topic": "Volcanoes"})
	assert r.status_code == 200
	body = r.json()
	assert body["topic"] == "Volcanoes"
	assert len(body["questions"]) == 5


@pytest.mark.parametrize(
	"questions",
	[_quiz_questions(4), _quiz_questions(5, options=3)],
	ids=["too-few-questions", "too-few-options"],
)
def test_quiz_unexpected_format_is_502(client, fake_gemini, questions):
	fake_gemini.responses.append(json.dumps(questions))
	r = client.post("/sparkiq/quiz", json={"topic": "Volcanoes"})
	assert r.status_code == 502
	assert r.json()["detail"] == "Failed to generate the quiz."


def test_quiz_feedback(client, fake_gemini):
	fake_gemini.responses.append("  Great job!  ")
	r = client.post("/sparkiq/quiz/feedback", json={"score": 4, "total_questions": 5, "topic": "Volcanoes"})
	assert r.status_code == 200
	assert r.json() == {"feedback": "Great job!"}
	assert "4 out of 5" in fake_gemini.calls[0]["prompt"]


def test_quiz_feedback_score_above_total(client, fake_gemini):
	r = client.post("/sparkiq/quiz/feedback", json={"score": 6, "total_questions": 5, "topic": "Volcanoes"})
	assert r.status_code == 400


def test_listening_feedback(client, fake_gemini):
	fake_gemini.responses.append("Well listened!")
	r = client.post(
		"/sparkiq/listening/feedback",
		json={"score": 1, "total_questions": 3, "story_title": "The Lost Key"},
	)
	assert r.status_code == 200
	assert "The Lost Key" in fake_gemini.calls[0]["prompt"]


def test_evaluate_solution(client, fake_gemini):
	fake_gemini.responses.append("**Nice reasoning.**")
	challenge = {**CHALLENGE, "category": "Puzzle"}
	r = client.post("/sparkiq/evaluate", json={"challenge": challenge, "solution": "Use a rope."})
	assert r.status_code == 200
	assert r.json()["feedback"] == "**Nice reasoning.**"
	assert "Use a rope." in fake_gemini.calls[0]["prompt"]


def test_evaluate_solution_service_failure_is_502(client, fake_gemini):
	fake_gemini.responses.append(GeminiError("down"))
	challenge = {**CHALLENGE, "category": "Puzzle"}
	r = client.post("/sparkiq/evaluate", json={"challenge": challenge, "solution": "Use a rope."})
	assert r.status_code == 502
	assert r.json()["detail"] == "Failed to get feedback from the AI coach."


def test_insights(client, fake_gemini):
	fake_gemini.responses.append('```\n["Keep going", "Try a debate", "Review quizzes"]\n```')
	r = client.post("/sparkiq/insights", json={"summary": {"quizzes": 3, "averageScore": 0.8}})
	assert r.status_code == 200
	assert r.json() == {"insights": ["Keep going", "Try a debate", "Review quizzes"]}
	assert '"averageScore": 0.8' in fake_gemini.calls[0]["prompt"]
