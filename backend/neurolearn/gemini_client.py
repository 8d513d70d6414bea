from __future__ import annotations
import logging
import httpx
from typing import Any, AsyncIterator, Dict, List, Optional
from .settings import settings

logger = logging.getLogger(__name__)


class GeminiError(RuntimeError):
	"""The generation service failed or answered with an unexpected envelope."""


class GeminiClient:
	def __init__(
		self,
		api_key: Optional[str] = None,
		*,
		model: Optional[str] = None,
		image_model: Optional[str] = None,
		transport: Optional[httpx.AsyncBaseTransport] = None,
	) -> None:
		self.api_key = api_key or settings.gemini_api_key
		if not self.api_key:
			raise ValueError("GEMINI_API_KEY is not configured")
		self.model = model or settings.gemini_model
		self.image_model = image_model or settings.gemini_image_model
		self.provider = settings.gemini_provider
		self._auth_in_query = self.provider != "vertex"
		timeout = settings.request_timeout_seconds
		self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
		self._fallback_client: Optional[httpx.AsyncClient] = None
		self._fallback_enabled = bool(settings.openrouter_api_key)
		self._openrouter_api_key = settings.openrouter_api_key
		self._openrouter_model = settings.openrouter_model
		self._openrouter_base_url = settings.openrouter_base_url
		self._openrouter_headers = {
			"Authorization": f"Bearer {self._openrouter_api_key}" if self._openrouter_api_key else "",
			"Content-Type": "application/json",
			"HTTP-Referer": settings.openrouter_referer,
			"X-Title": settings.openrouter_title,
		}
		if self._fallback_enabled:
			self._fallback_client = httpx.AsyncClient(timeout=timeout, transport=transport)

	def endpoint(self, model: str) -> str:
		if self.provider == "vertex":
			region = settings.vertex_region
			project = settings.vertex_project or "placeholder-project"
			# Vertex AI Generative REST endpoint (API key via header)
			return (
				f"https://{region}-aiplatform.googleapis.com/v1/projects/{project}/locations/{region}/publishers/google/models/{model}:generateContent"
			)
		# Google AI Studio (Generative Language API)
		return f"https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

	async def generate(
		self,
		prompt: str,
		*,
		response_schema: Optional[Dict[str, Any]] = None,
		system_instruction: Optional[str] = None,
		thinking_budget: Optional[int] = None,
	) -> str:
		payload: Dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
		return await self._post_text_payload(
			payload,
			response_schema=response_schema,
			system_instruction=system_instruction,
			thinking_budget=thinking_budget,
			fallback_prompt=prompt,
		)

	async def generate_multimodal(
		self,
		parts: List[Dict[str, Any]],
		*,
		role: str = "user",
		response_schema: Optional[Dict[str, Any]] = None,
		system_instruction: Optional[str] = None,
	) -> str:
		payload: Dict[str, Any] = {"contents": [{"role": role, "parts": parts}]}
		return await self._post_text_payload(
			payload,
			response_schema=response_schema,
			system_instruction=system_instruction,
			fallback_prompt=None,
		)

	async def generate_image(self, prompt: str) -> str:
		"""Render ``prompt`` with the image model and return a ``data:`` URL."""
		payload: Dict[str, Any] = {
			"contents": [{"parts": [{"text": prompt}]}],
			"generationConfig": {"responseModalities": ["IMAGE"]},
		}
		r = await self._post(self.endpoint(self.image_model), payload)
		try:
			parts = r.json()["candidates"][0]["content"]["parts"]
		except (ValueError, KeyError, IndexError, TypeError) as err:
			raise GeminiError(f"Unexpected Gemini image response: {r.text}") from err
		for part in parts:
			inline = part.get("inlineData") or part.get("inline_data")
			if inline and inline.get("data"):
				mime_type = inline.get("mimeType") or inline.get("mime_type") or "image/png"
				return f"data:{mime_type};base64,{inline['data']}"
		raise GeminiError("No image data found in response.")

	async def _post(self, url: str, payload: Dict[str, Any]) -> httpx.Response:
		params: Dict[str, Any] = {}
		headers: Dict[str, str] = {}
		if self._auth_in_query:
			params["key"] = self.api_key
		else:
			headers["x-goog-api-key"] = self.api_key
		try:
			r = await self._client.post(url, params=params, headers=headers, json=payload)
			r.raise_for_status()
		except httpx.HTTPStatusError as http_err:
			raise GeminiError(
				f"Gemini returned HTTP {http_err.response.status_code}: {http_err.response.text[:500]}"
			) from http_err
		except httpx.RequestError as net_err:
			raise GeminiError(f"Gemini request failed: {net_err}") from net_err
		return r

	async def _post_text_payload(
		self,
		payload: Dict[str, Any],
		*,
		response_schema: Optional[Dict[str, Any]] = None,
		system_instruction: Optional[str] = None,
		thinking_budget: Optional[int] = None,
		fallback_prompt: Optional[str],
	) -> str:
		generation_config: Dict[str, Any] = {}
		if response_schema is not None:
			generation_config["responseMimeType"] = "application/json"
			generation_config["responseJsonSchema"] = response_schema
		if thinking_budget is not None:
			generation_config["thinkingConfig"] = {"thinkingBudget": int(thinking_budget)}
		if generation_config:
			payload = {**payload, "generationConfig": generation_config}
		if system_instruction:
			payload = {**payload, "systemInstruction": {"parts": [{"text": system_instruction}]}}
		url = self.endpoint(self.model)
		last_error: Optional[Exception] = None
		try:
			r = await self._post(url, payload)
		except GeminiError as err:
			last_error = err
			if thinking_budget is not None:
				# Some models reject thinkingConfig; retry once without it
				retry_config = dict(generation_config)
				retry_config.pop("thinkingConfig", None)
				retry_payload = {k: v for k, v in payload.items() if k != "generationConfig"}
				if retry_config:
					retry_payload["generationConfig"] = retry_config
				try:
					r = await self._post(url, retry_payload)
					last_error = None
				except GeminiError as retry_err:
					last_error = retry_err
		if last_error is None:
			try:
				data = r.json()
				return data["candidates"][0]["content"]["parts"][0]["text"]
			except (ValueError, KeyError, IndexError, TypeError):
				last_error = GeminiError(f"Unexpected Gemini response: {r.text}")
		if not self._fallback_enabled or fallback_prompt is None:
			raise last_error
		logger.warning("Gemini call failed (%s); trying OpenRouter fallback", last_error)
		return await self._fallback_generate(fallback_prompt, last_error)

	async def aclose(self) -> None:
		await self._client.aclose()
		if self._fallback_client is not None:
			await self._fallback_client.aclose()

	async def _fallback_generate(self, prompt: str, primary_error: Exception) -> str:
		if not self._fallback_client or not self._openrouter_api_key:
			raise primary_error
		headers = {k: v for k, v in self._openrouter_headers.items() if v}
		payload: Dict[str, Any] = {
			"model": self._openrouter_model,
			"messages": [{"role": "user", "content": prompt}],
		}
		try:
			r = await self._fallback_client.post(
				self._openrouter_base_url,
				headers=headers,
				json=payload,
			)
			r.raise_for_status()
			data = r.json()
			return data["choices"][0]["message"]["content"]
		except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as fallback_err:
			raise GeminiError(
				f"Gemini primary call failed ({primary_error}); fallback via OpenRouter also failed"
			) from fallback_err


async def get_gemini_client() -> AsyncIterator[GeminiClient]:
	"""FastAPI dependency: one client per request, closed afterwards."""
	try:
		client = GeminiClient()
	except ValueError as err:
		raise GeminiError(str(err)) from err
	try:
		yield client
	finally:
		await client.aclose()
