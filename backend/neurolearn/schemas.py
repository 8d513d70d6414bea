"""Shapes the models are asked to return, and the shapes the API returns.

Field names are snake_case in Python and camelCase on the wire, which is what
the prompts and the frontend use.
"""
from __future__ import annotations
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---- NeuroLearn: simplification ----

class KeyTerm(CamelModel):
	term: str
	definition: str


class MediaLink(CamelModel):
	title: str
	link: str


class Media(CamelModel):
	web_resource: MediaLink
	youtube_video: MediaLink


class ContentLevel(CamelModel):
	definition: str
	example: str
	use_case: str
	summary: str
	key_terms: List[KeyTerm]
	media: Media


LevelName = Literal["beginner", "intermediate", "advancedSimplified"]


class SimplifiedContent(CamelModel):
	suggested_level: LevelName
	beginner: ContentLevel
	intermediate: ContentLevel
	advanced_simplified: ContentLevel


# ---- NeuroLearn: teaching pack ----

class IndustryExample(CamelModel):
	example: str
	explanation: str


class ImagePrompt(CamelModel):
	prompt: str
	caption: str
	explanation: str
	relevance: str


class ImageDetail(ImagePrompt):
	url: str
	source: Optional[str] = None


class YoutubeSource(CamelModel):
	title: str
	link: str
	relevance: str


class WebSource(CamelModel):
	title: str
	link: str


class _ExpandedContentBase(CamelModel):
	definition_and_introduction: str
	purpose_or_importance: str
	detailed_workflow_or_architecture: str
	step_by_step_explanation: str
	real_life_and_industry_examples: List[IndustryExample]
	applications_and_use_cases: List[str]
	merits: List[str]
	demerits: List[str]
	youtube_sources: List[YoutubeSource]
	web_sources: List[WebSource]
	summary_or_key_takeaways: str


class ExpandedContentDraft(_ExpandedContentBase):
	"""What the text model returns: image prompts that still need rendering."""
	images: List[ImagePrompt]


class ExpandedContent(_ExpandedContentBase):
	images: List[ImageDetail]


# ---- NeuroLearn: comprehension ----

class ComprehensionQuestion(CamelModel):
	question: str
	type: Literal["multiple-choice", "short-answer", "scenario"]
	options: Optional[List[str]] = None
	reference: str
	correct_answer_index: Optional[int] = None


class TestResult(CamelModel):
	__test__ = False

	overall_feedback: str
	understanding_level: Literal["weak", "moderate", "strong"]
	areas_to_revisit: List[str]


# ---- SparkIQ ----

class QuizQuestion(CamelModel):
	question: str
	options: List[str]
	correct_answer_index: int


class Quiz(CamelModel):
	topic: str
	questions: List[QuizQuestion]


ChallengeCategory = Literal[
	"Puzzle",
	"Debate",
	"Design Task",
	"Jam",
	"Try & Analyze",
	"Quiz",
	"Image Puzzle",
	"Odd-One-Out",
	"Listening Practice",
]
Difficulty = Literal["Easy", "Medium", "Hard"]


class ChallengeDraft(CamelModel):
	title: str
	description: str
	task: str
	suggested_time: int


class OddOneOutDraft(CamelModel):
	title: str
	task: str
	items: List[str]
	suggested_time: int


class ListeningDraft(CamelModel):
	title: str
	story: str
	questions: List[QuizQuestion]


class ThinkBotChallenge(CamelModel):
	category: ChallengeCategory
	title: str
	description: str = ""
	task: str
	suggested_time: int
	image_url: Optional[str] = None
	items: Optional[List[str]] = None
	story: Optional[str] = None
	questions: Optional[List[Union[QuizQuestion, ComprehensionQuestion]]] = None
