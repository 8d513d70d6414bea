from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

from fastapi import HTTPException
from pydantic import TypeAdapter

from .gemini_client import GeminiClient, GeminiError
from .json_extract import ResponseParseError, decode_as

logger = logging.getLogger(__name__)

T = TypeVar("T")


def response_schema_for(shape: Any) -> Dict[str, Any]:
	return TypeAdapter(shape).json_schema()


async def generate_structured(
	client: GeminiClient,
	prompt: str,
	shape: Type[T],
	*,
	failure_detail: str,
	system_instruction: Optional[str] = None,
	extra_parts: Optional[List[Dict[str, Any]]] = None,
) -> T:
	"""Ask for JSON matching ``shape`` and return it validated.

	Service and parse failures are logged with the raw model output and
	surface as HTTP 502 carrying ``failure_detail``.
	"""
	schema = response_schema_for(shape)
	try:
		if extra_parts:
			raw = await client.generate_multimodal(
				[{"text": prompt}, *extra_parts],
				response_schema=schema,
				system_instruction=system_instruction,
			)
		else:
			raw = await client.generate(prompt, response_schema=schema, system_instruction=system_instruction)
	except GeminiError as err:
		logger.error("%s Gemini call failed: %s", failure_detail, err)
		raise HTTPException(status_code=502, detail=failure_detail) from err
	try:
		return decode_as(raw, shape)
	except ResponseParseError as err:
		logger.error(
			"%s %s: %s\nOriginal response: %r\nExtracted payload: %r",
			failure_detail,
			type(err).__name__,
			err,
			err.raw,
			err.payload,
		)
		raise HTTPException(status_code=502, detail=failure_detail) from err


async def generate_text(client: GeminiClient, prompt: str, *, failure_detail: str) -> str:
	try:
		text = await client.generate(prompt)
	except GeminiError as err:
		logger.error("%s Gemini call failed: %s", failure_detail, err)
		raise HTTPException(status_code=502, detail=failure_detail) from err
	return text.strip()
