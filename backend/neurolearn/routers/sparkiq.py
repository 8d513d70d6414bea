from __future__ import annotations
import json
import logging
from typing import Any, Dict, List, Literal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..gemini_client import GeminiClient, GeminiError, get_gemini_client
from ..schemas import (
	ChallengeDraft,
	Difficulty,
	ListeningDraft,
	OddOneOutDraft,
	Quiz,
	QuizQuestion,
	ThinkBotChallenge,
)
from ..structured import generate_structured, generate_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sparkiq", tags=["sparkiq"])


QUIZ_QUESTION_COUNT = 5
QUIZ_OPTION_COUNT = 4
ODD_ONE_OUT_ITEM_COUNT = 4
LISTENING_QUESTION_COUNT = 3
INSIGHT_COUNT = 3

LISTENING_TASK = "Listen to the story and answer the questions that follow."


class ChallengeRequest(BaseModel):
	category: Literal["Puzzle", "Debate", "Try & Analyze"]
	difficulty: Difficulty = "Medium"


class CustomChallengeRequest(BaseModel):
	category: Literal["Jam", "Design Task"]
	prompt: str


class EvaluateSolutionRequest(BaseModel):
	challenge: ThinkBotChallenge
	solution: str


class QuizRequest(BaseModel):
	topic: str


class ScoreFeedbackRequest(BaseModel):
	score: int = Field(ge=0)
	total_questions: int = Field(gt=0)
	topic: str


class ListeningFeedbackRequest(BaseModel):
	score: int = Field(ge=0)
	total_questions: int = Field(gt=0)
	story_title: str


class InsightsRequest(BaseModel):
	summary: Dict[str, Any]


class FeedbackResponse(BaseModel):
	feedback: str


class InsightsResponse(BaseModel):
	insights: List[str]


def _build_challenge_prompt(category: str, difficulty: str) -> str:
	return (
		"Generate a short, engaging, and creative thinking challenge for a high school student. "
		f'The category is "{category}" and the difficulty level should be "{difficulty}". '
		"Adjust the complexity of the problem, the required depth of thinking, and the subtlety of the task "
		"based on the difficulty. An 'Easy' task should be straightforward. A 'Medium' task should require some "
		"lateral thinking. A 'Hard' task should be complex, multi-layered, or require deep critical analysis. "
		"The challenge should be unique and not something easily found online. "
		"The suggested time to complete (suggestedTime, in minutes) should be between 5 and 15."
	)


def _build_custom_challenge_prompt(category: str, user_prompt: str) -> str:
	return (
		"Generate a short, engaging, and creative thinking challenge for a high school student. "
		f'The category is "{category}". The challenge should be based on the following user-provided topic '
		f'or scenario: "{user_prompt}". The challenge should be unique and not something easily found online. '
		"The suggested time to complete (suggestedTime, in minutes) should be between 5 and 15."
	)


def _build_odd_one_out_prompt() -> str:
	return (
		'Generate an "Odd-One-Out" challenge. Provide a catchy title, a one-sentence task asking the student to '
		f"identify and justify the odd one out, and exactly {ODD_ONE_OUT_ITEM_COUNT} items where three are "
		"connected in a clever, subtle way and one is the odd one out. The connection should not be immediately "
		"obvious. The suggested time should be short, like 2-3 minutes."
	)


_IMAGE_PUZZLE_CONCEPT_PROMPT = (
	"Generate a concept for a visual puzzle or rebus that can be represented in a single image. "
	"The concept should be clever and challenging. Describe the visual elements needed for the image and the "
	"puzzle's solution. For example: 'Concept: An image of a knight chess piece made of metal, shining brightly. "
	"Solution: Heavy metal.'"
)


def _build_image_puzzle_prompt(concept: str) -> str:
	return (
		f"Create an image for a visual puzzle based on this concept: {concept}. The image should be clear and "
		"high-quality, focusing on the key elements described. Do not include any text in the image."
	)


def _build_listening_prompt() -> str:
	return (
		"Create a short story for a listening comprehension exercise. The story should be engaging and around "
		"150-200 words, with specific details that can be asked about later. After the story, create "
		f"{LISTENING_QUESTION_COUNT} multiple-choice questions to test understanding. Each question must have "
		f"{QUIZ_OPTION_COUNT} options, and one must be correct. Indicate the 0-based index of the correct answer."
	)


def _build_solution_feedback_prompt(challenge: ThinkBotChallenge, solution: str) -> str:
	return (
		"A student was given the following challenge:\n"
		f"- Category: {challenge.category}\n"
		f"- Title: {challenge.title}\n"
		f"- Task: {challenge.task}\n\n"
		f'The student\'s solution was:\n"{solution}"\n\n'
		"Act as an encouraging AI Coach. Provide constructive feedback on the student's solution. Keep the feedback "
		"concise (2-3 paragraphs). Start with something positive, then offer specific suggestions for improvement. "
		"If it's a puzzle-like challenge (like Odd-One-Out or Image Puzzle), first state what the likely correct "
		"answer is and why, then evaluate the student's reasoning. Format the output in Markdown."
	)


def _build_quiz_prompt(topic: str) -> str:
	return (
		f'Generate a {QUIZ_QUESTION_COUNT}-question multiple-choice quiz on the topic of "{topic}". '
		f"Each question should have {QUIZ_OPTION_COUNT} options. "
		"Indicate the 0-based index of the correct answer for each question."
	)


def _build_quiz_feedback_prompt(score: int, total: int, topic: str) -> str:
	return (
		f'A student scored {score} out of {total} on a quiz about "{topic}". Provide some brief, encouraging '
		"feedback and suggest one related topic they might be interested in exploring next."
	)


def _build_listening_feedback_prompt(score: int, total: int, story_title: str) -> str:
	return (
		f"A student scored {score} out of {total} on a listening comprehension quiz for the story titled "
		f'"{story_title}". Provide some brief, encouraging feedback. If they did well, praise their attention to '
		"detail. If they struggled, suggest listening again or focusing on key details next time."
	)


def _build_insights_prompt(summary: Dict[str, Any]) -> str:
	return (
		"You are an encouraging AI learning coach named Sparky. Based on the following user performance data "
		f"(JSON format), generate exactly {INSIGHT_COUNT} short, actionable, and positive insights. Help the user "
		"understand their strengths and suggest what they could try next. Frame the feedback to be motivating and "
		f"format it as a simple JSON array of strings. Data: {json.dumps(summary, indent=2)}"
	)


def _valid_questions(questions: List[QuizQuestion], count: int) -> bool:
	if len(questions) != count:
		return False
	for q in questions:
		if len(q.options) != QUIZ_OPTION_COUNT:
			return False
		if not 0 <= q.correct_answer_index < QUIZ_OPTION_COUNT:
			return False
	return True


@router.post("/challenge", response_model=ThinkBotChallenge)
async def challenge(req: ChallengeRequest, client: GeminiClient = Depends(get_gemini_client)):
	draft = await generate_structured(
		client,
		_build_challenge_prompt(req.category, req.difficulty),
		ChallengeDraft,
		failure_detail="Failed to generate a new challenge.",
	)
	return ThinkBotChallenge(**draft.model_dump(), category=req.category)


@router.post("/challenge/custom", response_model=ThinkBotChallenge)
async def custom_challenge(req: CustomChallengeRequest, client: GeminiClient = Depends(get_gemini_client)):
	user_prompt = req.prompt.strip()
	if not user_prompt:
		raise HTTPException(status_code=400, detail="prompt is required")
	draft = await generate_structured(
		client,
		_build_custom_challenge_prompt(req.category, user_prompt),
		ChallengeDraft,
		failure_detail="Failed to generate a custom challenge based on your prompt.",
	)
	return ThinkBotChallenge(**draft.model_dump(), category=req.category)


@router.post("/challenge/odd-one-out", response_model=ThinkBotChallenge)
async def odd_one_out(client: GeminiClient = Depends(get_gemini_client)):
	failure = "Failed to generate an Odd-One-Out challenge."
	draft = await generate_structured(client, _build_odd_one_out_prompt(), OddOneOutDraft, failure_detail=failure)
	if len(draft.items) != ODD_ONE_OUT_ITEM_COUNT:
		logger.error("Odd-One-Out challenge has %d items, expected %d", len(draft.items), ODD_ONE_OUT_ITEM_COUNT)
		raise HTTPException(status_code=502, detail=failure)
	return ThinkBotChallenge(**draft.model_dump(), category="Odd-One-Out")


@router.post("/challenge/image-puzzle", response_model=ThinkBotChallenge)
async def image_puzzle(client: GeminiClient = Depends(get_gemini_client)):
	failure = "Failed to generate an Image Puzzle challenge. The AI service may be temporarily unavailable."
	concept = await generate_text(client, _IMAGE_PUZZLE_CONCEPT_PROMPT, failure_detail=failure)
	try:
		image_url = await client.generate_image(_build_image_puzzle_prompt(concept))
	except GeminiError as err:
		logger.error("Image puzzle rendering failed: %s", err)
		raise HTTPException(status_code=502, detail=failure) from err
	return ThinkBotChallenge(
		category="Image Puzzle",
		title="What do you see?",
		description="Analyze the image carefully. It represents a common phrase, object, or idea in a visual way.",
		task="Figure out the hidden meaning or phrase in the image.",
		suggested_time=5,
		image_url=image_url,
	)


@router.post("/challenge/listening", response_model=ThinkBotChallenge)
async def listening_practice(client: GeminiClient = Depends(get_gemini_client)):
	failure = "Failed to generate a Listening Practice challenge."
	draft = await generate_structured(client, _build_listening_prompt(), ListeningDraft, failure_detail=failure)
	if not _valid_questions(draft.questions, LISTENING_QUESTION_COUNT):
		logger.error("Listening practice questions have an unexpected format: %r", draft.questions)
		raise HTTPException(status_code=502, detail=failure)
	return ThinkBotChallenge(
		**draft.model_dump(),
		category="Listening Practice",
		task=LISTENING_TASK,
		suggested_time=0,
	)


@router.post("/evaluate", response_model=FeedbackResponse)
async def evaluate_solution(req: EvaluateSolutionRequest, client: GeminiClient = Depends(get_gemini_client)):
	solution = req.solution.strip()
	if not solution:
		raise HTTPException(status_code=400, detail="solution is required")
	feedback = await generate_text(
		client,
		_build_solution_feedback_prompt(req.challenge, solution),
		failure_detail="Failed to get feedback from the AI coach.",
	)
	return FeedbackResponse(feedback=feedback)


@router.post("/quiz", response_model=Quiz)
async def quiz(req: QuizRequest, client: GeminiClient = Depends(get_gemini_client)):
	topic = req.topic.strip()
	if not topic:
		raise HTTPException(status_code=400, detail="topic is required")
	failure = "Failed to generate the quiz."
	questions = await generate_structured(client, _build_quiz_prompt(topic), List[QuizQuestion], failure_detail=failure)
	if not _valid_questions(questions, QUIZ_QUESTION_COUNT):
		logger.error("AI returned quiz in an unexpected format: %r", questions)
		raise HTTPException(status_code=502, detail=failure)
	return Quiz(topic=topic, questions=questions)


@router.post("/quiz/feedback", response_model=FeedbackResponse)
async def quiz_feedback(req: ScoreFeedbackRequest, client: GeminiClient = Depends(get_gemini_client)):
	if req.score > req.total_questions:
		raise HTTPException(status_code=400, detail="score cannot exceed total_questions")
	feedback = await generate_text(
		client,
		_build_quiz_feedback_prompt(req.score, req.total_questions, req.topic),
		failure_detail="Failed to get quiz feedback.",
	)
	return FeedbackResponse(feedback=feedback)


@router.post("/listening/feedback", response_model=FeedbackResponse)
async def listening_feedback(req: ListeningFeedbackRequest, client: GeminiClient = Depends(get_gemini_client)):
	if req.score > req.total_questions:
		raise HTTPException(status_code=400, detail="score cannot exceed total_questions")
	feedback = await generate_text(
		client,
		_build_listening_feedback_prompt(req.score, req.total_questions, req.story_title),
		failure_detail="Failed to get listening practice feedback.",
	)
	return FeedbackResponse(feedback=feedback)


@router.post("/insights", response_model=InsightsResponse)
async def insights(req: InsightsRequest, client: GeminiClient = Depends(get_gemini_client)):
	items = await generate_structured(
		client,
		_build_insights_prompt(req.summary),
		List[str],
		failure_detail="Failed to generate AI-powered insights.",
	)
	return InsightsResponse(insights=items)
