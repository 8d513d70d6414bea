from __future__ import annotations
import asyncio
import json
import logging
import random
import re
from typing import Dict, List, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..gemini_client import GeminiClient, GeminiError, get_gemini_client
from ..schemas import (
	ComprehensionQuestion,
	ContentLevel,
	ExpandedContent,
	ExpandedContentDraft,
	ImageDetail,
	SimplifiedContent,
	TestResult,
)
from ..settings import settings
from ..structured import generate_structured

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/neurolearn", tags=["neurolearn"])


NEUROLEARN_SYSTEM_PROMPT = (
	"You are NeuroLearn, an inclusive, adaptive AI educator. Your job is to make learning accessible, "
	"personalized and emotionally supportive for every learner, from beginner to advanced.\n"
	"Identify the input type and its complexity, then simplify, expand and adapt it into clearly separated, "
	"self-contained sections. Use plain language, relatable analogies and concrete examples. "
	"Format long-form fields with Markdown (lists, bold key terms). "
	"Always answer with a single JSON value that follows the requested schema exactly."
)

COMPREHENSION_QUESTION_COUNT = 4


class UploadedFile(BaseModel):
	mime_type: str
	data: str = Field(description="Base64-encoded file contents")
	filename: str


class SimplifyRequest(BaseModel):
	text: Optional[str] = None
	file: Optional[UploadedFile] = None


class TranslateRequest(BaseModel):
	content: ContentLevel
	target_language: str


class ExpandRequest(BaseModel):
	topic: str
	refine: bool = False


class ComprehensionGenerateRequest(BaseModel):
	topic: str
	content: ExpandedContent


class ComprehensionEvaluateRequest(BaseModel):
	questions: List[ComprehensionQuestion]
	answers: List[str]


_SIMPLIFY_BASE_PROMPT = (
	"First, analyze the input content's complexity and determine the most suitable starting learning level "
	"for a student ('beginner', 'intermediate', or 'advancedSimplified'). Return this as 'suggestedLevel'. "
	"Then, generate a simplified breakdown with three levels: Beginner, Intermediate, and Advanced Simplified. "
	"For each level, provide: a definition, an example, a use case, a summary, a list of 2-3 key terms with "
	"definitions, one relevant web resource link, and one relevant YouTube video link."
)


def _build_simplify_prompt(text: str) -> str:
	return f'{_SIMPLIFY_BASE_PROMPT} Input Text: "{text}"'


def _build_simplify_file_prompt(filename: str) -> str:
	return (
		f'The user has uploaded a media file named "{filename}". First, extract the content from this file '
		"(e.g., transcribe audio/video, extract text from documents). Based on the extracted content, "
		f"{_SIMPLIFY_BASE_PROMPT[0].lower()}{_SIMPLIFY_BASE_PROMPT[1:]}"
	)


def _build_translate_prompt(content: ContentLevel, target_language: str) -> str:
	return (
		f"Translate the following JSON object's string values into {target_language}. "
		"Preserve the JSON structure and any Markdown formatting within the strings (like lists, bolding, etc.). "
		"Do not translate technical terms or proper nouns if there is no direct, common equivalent; keep them in English.\n\n"
		f"Input JSON:\n{content.model_dump_json(by_alias=True)}"
	)


def _build_expand_prompt(topic: str, refine: bool, image_count: int) -> str:
	refinement = (
		" This is a second attempt because the user did not understand the first explanation. "
		"Make this version significantly simpler, use more analogies, and make the examples very clear and relatable."
		if refine
		else ""
	)
	return (
		"Act as an expert educator and professor. Create an extremely detailed, professor-level explanation "
		f'on the following topic: "{topic}". Generate a comprehensive pack covering all specified parts, '
		f"including exactly {image_count} image prompts. Each image prompt must be a very descriptive prompt for an "
		"image generation model. The final output must be a single, valid JSON object that strictly adheres to "
		"the provided schema. Pay close attention to escaping special characters. Do not add any text or "
		f"markdown formatting before or after the JSON object.{refinement}"
	)


def _build_comprehension_prompt(topic: str, content: ExpandedContent) -> str:
	return (
		f'Based on the provided teaching pack about "{topic}", generate exactly {COMPREHENSION_QUESTION_COUNT} '
		"comprehension questions to test a user's understanding. Include a mix of question types "
		"(multiple-choice, short-answer, and an applied scenario). Provide 4 options for multiple-choice questions. "
		"The questions must test the core concepts: definition, workflow, importance, and real-world application. "
		"Set 'reference' to the section of the content each question tests (e.g., 'Definition', 'Workflow').\n"
		f"Content: {content.model_dump_json(by_alias=True)}"
	)


def _build_evaluation_prompt(questions: List[ComprehensionQuestion], answers: List[str]) -> str:
	return (
		"A user has taken a comprehension test. Evaluate their answers and provide feedback.\n"
		f"Questions: {json.dumps([q.model_dump(by_alias=True, exclude_none=True) for q in questions])}\n"
		f"User's Answers: {json.dumps(answers)}\n\n"
		"Provide an overall feedback summary in an encouraging tone, assess their understanding level "
		"(weak, moderate, or strong), and list specific areas they should revisit based on their incorrect answers."
	)


def find_web_image(prompt: str) -> Dict[str, str]:
	"""Keyword image URL used when an illustration cannot be generated."""
	words = re.sub(r"[^a-zA-Z0-9 ]", "", prompt).split(" ")[:5]
	keywords = quote(",".join(words))
	return {
		"url": f"https://source.unsplash.com/1280x720/?{keywords}&sig={random.random()}",
		"source": "Unsplash",
	}


async def _render_image(client: GeminiClient, prompt: str) -> Dict[str, str]:
	try:
		url = await client.generate_image(prompt)
	except GeminiError as err:
		logger.warning("Image generation failed for prompt %r, using web fallback: %s", prompt, err)
		return find_web_image(prompt)
	return {"url": url, "source": "AI Generated"}


@router.post("/simplify", response_model=SimplifiedContent)
async def simplify(req: SimplifyRequest, client: GeminiClient = Depends(get_gemini_client)):
	failure = (
		"Failed to simplify content. The model may not be able to process this file type "
		"or the content may be too complex."
	)
	if req.file is not None:
		return await generate_structured(
			client,
			_build_simplify_file_prompt(req.file.filename),
			SimplifiedContent,
			failure_detail=failure,
			extra_parts=[{"inlineData": {"mimeType": req.file.mime_type, "data": req.file.data}}],
		)
	text = (req.text or "").strip()
	if not text:
		raise HTTPException(status_code=400, detail="text or file is required")
	return await generate_structured(client, _build_simplify_prompt(text), SimplifiedContent, failure_detail=failure)


@router.post("/translate", response_model=ContentLevel)
async def translate(req: TranslateRequest, client: GeminiClient = Depends(get_gemini_client)):
	language = req.target_language.strip()
	if not language:
		raise HTTPException(status_code=400, detail="target_language is required")
	return await generate_structured(
		client,
		_build_translate_prompt(req.content, language),
		ContentLevel,
		failure_detail="Failed to translate content. The AI service may not support this language or encountered an error.",
	)


@router.post("/expand", response_model=ExpandedContent)
async def expand(req: ExpandRequest, client: GeminiClient = Depends(get_gemini_client)):
	topic = req.topic.strip()
	if not topic:
		raise HTTPException(status_code=400, detail="topic is required")
	image_count = settings.max_images
	draft = await generate_structured(
		client,
		_build_expand_prompt(topic, req.refine, image_count),
		ExpandedContentDraft,
		failure_detail="Failed to generate the teaching pack.",
		system_instruction=NEUROLEARN_SYSTEM_PROMPT,
	)
	image_prompts = draft.images[:image_count]
	rendered = await asyncio.gather(*(_render_image(client, img.prompt) for img in image_prompts))
	images = [
		ImageDetail(**img.model_dump(), url=result["url"], source=result.get("source"))
		for img, result in zip(image_prompts, rendered)
	]
	return ExpandedContent(**draft.model_dump(exclude={"images"}), images=images)


@router.post("/comprehension/generate", response_model=List[ComprehensionQuestion])
async def generate_comprehension_test(req: ComprehensionGenerateRequest, client: GeminiClient = Depends(get_gemini_client)):
	failure = "Failed to generate the comprehension test."
	questions = await generate_structured(
		client,
		_build_comprehension_prompt(req.topic, req.content),
		List[ComprehensionQuestion],
		failure_detail=failure,
	)
	if len(questions) != COMPREHENSION_QUESTION_COUNT:
		logger.error("Comprehension test has %d questions, expected %d", len(questions), COMPREHENSION_QUESTION_COUNT)
		raise HTTPException(status_code=502, detail=failure)
	return questions


@router.post("/comprehension/evaluate", response_model=TestResult)
async def evaluate_comprehension_test(req: ComprehensionEvaluateRequest, client: GeminiClient = Depends(get_gemini_client)):
	if len(req.answers) != len(req.questions):
		raise HTTPException(status_code=400, detail="answers must contain one entry per question")
	return await generate_structured(
		client,
		_build_evaluation_prompt(req.questions, req.answers),
		TestResult,
		failure_detail="Failed to evaluate the test answers.",
	)
