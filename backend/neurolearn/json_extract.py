"""Salvage a single JSON value from free-form model output.

Models asked for pure JSON still wrap it in prose or markdown fences now and
then. ``extract_and_decode`` takes the span from the first opening delimiter
to the last closing one and parses it; ``decode_as`` additionally checks the
decoded value against an expected shape.
"""
from __future__ import annotations
import json
from typing import Any, List, Optional, Type, TypeVar

from pydantic import TypeAdapter, ValidationError

T = TypeVar("T")

_OPENERS = "{["
_CLOSERS = "}]"


class ResponseParseError(ValueError):
	"""Base class for failures turning a model response into structured data."""

	def __init__(self, message: str, raw: str, payload: Optional[str] = None) -> None:
		super().__init__(message)
		self.raw = raw
		self.payload = payload


class ExtractionError(ResponseParseError):
	def __init__(self, message: str, raw: str) -> None:
		super().__init__(message, raw)


class DecodeError(ResponseParseError):
	def __init__(self, message: str, raw: str, payload: str) -> None:
		super().__init__(message, raw, payload)


class ShapeError(ResponseParseError):
	"""Raised when decoded JSON does not match the shape the caller expects."""

	def __init__(self, message: str, raw: str, payload: str, value: Any, errors: List[Any]) -> None:
		super().__init__(message, raw, payload)
		self.value = value
		self.errors = errors


def _first_index(text: str, chars: str) -> int:
	found = [i for i in (text.find(c) for c in chars) if i != -1]
	return min(found) if found else -1


def extract_payload(raw: str) -> str:
	"""Return ``raw`` from the first ``{``/``[`` through the last ``}``/``]``.

	The span is greedy: two sibling fragments produce one span covering both,
	which then fails to decode. Ordering is not checked here; a closer that
	precedes every opener yields an empty span that the decoder rejects.
	"""
	start = _first_index(raw, _OPENERS)
	if start == -1:
		raise ExtractionError("No JSON object or array found in the response.", raw)
	end = max(raw.rfind(c) for c in _CLOSERS)
	if end == -1:
		raise ExtractionError("Could not find a valid end for the JSON content.", raw)
	return raw[start : end + 1]


def extract_balanced_payload(raw: str) -> str:
	"""Return the first complete JSON object or array in ``raw``.

	Scans forward from the first opener tracking nesting depth, skipping over
	string literals, and stops when depth returns to zero. Unlike
	``extract_payload`` this ignores trailing fragments, so
	``'{"a":1} and [1,2]'`` yields ``'{"a":1}'``.
	"""
	start = _first_index(raw, _OPENERS)
	if start == -1:
		raise ExtractionError("No JSON object or array found in the response.", raw)
	depth = 0
	in_string = False
	escaped = False
	for i in range(start, len(raw)):
		ch = raw[i]
		if in_string:
			if escaped:
				escaped = False
			elif ch == "\\":
				escaped = True
			elif ch == '"':
				in_string = False
			continue
		if ch == '"':
			in_string = True
		elif ch in _OPENERS:
			depth += 1
		elif ch in _CLOSERS:
			depth -= 1
			if depth == 0:
				return raw[start : i + 1]
	raise ExtractionError("JSON content is not closed before the end of the response.", raw)


def decode_payload(raw: str, payload: str) -> Any:
	try:
		return json.loads(payload)
	except json.JSONDecodeError as exc:
		raise DecodeError(
			f"The AI returned a response that could not be parsed as JSON: {exc.msg}",
			raw,
			payload,
		) from exc


def extract_and_decode(raw: str) -> Any:
	"""Extract the embedded payload from ``raw`` and parse it as JSON.

	Raises ``ExtractionError`` when no delimiters are found and ``DecodeError``
	when the extracted span is not valid JSON. Both keep the raw text (and the
	span, for decode failures) for the caller to log.
	"""
	payload = extract_payload(raw)
	return decode_payload(raw, payload)


def decode_as(raw: str, shape: Type[T]) -> T:
	"""``extract_and_decode`` followed by validation against ``shape``.

	``shape`` is anything pydantic can build a ``TypeAdapter`` for: a model
	class, ``List[Model]``, ``List[str]`` and so on.
	"""
	payload = extract_payload(raw)
	value = decode_payload(raw, payload)
	try:
		return TypeAdapter(shape).validate_python(value)
	except ValidationError as exc:
		raise ShapeError(
			f"The AI response did not match the expected structure ({exc.error_count()} errors).",
			raw,
			payload,
			value,
			exc.errors(),
		) from exc
