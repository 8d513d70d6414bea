"""Shared test fixtures.

Environment defaults are set before anything imports ``neurolearn.settings``
so the app builds against a throwaway SQLite file and a dummy API key.
"""

import os
import tempfile
from collections.abc import Generator
from typing import Any

import pytest
from fastapi.testclient import TestClient

_DB_DIR = tempfile.mkdtemp(prefix="neurolearn-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}")
os.environ.setdefault("GEMINI_API_KEY", "test-key")
os.environ["OPENROUTER_API_KEY"] = ""

from neurolearn.gemini_client import GeminiError, get_gemini_client
from neurolearn.main import app


class FakeGeminiClient:
	"""Stand-in for ``GeminiClient`` that replays canned model output.

	``responses`` is consumed in order by ``generate``/``generate_multimodal``;
	an ``Exception`` instance in the queue is raised instead of returned.
	``images`` works the same way for ``generate_image``.
	"""

	def __init__(self) -> None:
		self.responses: list[Any] = []
		self.images: list[Any] = []
		self.calls: list[dict[str, Any]] = []

	def _next(self, queue: list[Any]) -> str:
		if not queue:
			raise GeminiError("no canned response left")
		item = queue.pop(0)
		if isinstance(item, Exception):
			raise item
		return item

	async def generate(self, prompt: str, **kwargs: Any) -> str:
		self.calls.append({"kind": "text", "prompt": prompt, **kwargs})
		return self._next(self.responses)

	async def generate_multimodal(self, parts: list[dict[str, Any]], **kwargs: Any) -> str:
		self.calls.append({"kind": "multimodal", "parts": parts, **kwargs})
		return self._next(self.responses)

	async def generate_image(self, prompt: str) -> str:
		self.calls.append({"kind": "image", "prompt": prompt})
		return self._next(self.images)

	async def aclose(self) -> None:
		pass


@pytest.fixture
def fake_gemini() -> Generator[FakeGeminiClient, None, None]:
	fake = FakeGeminiClient()
	app.dependency_overrides[get_gemini_client] = lambda: fake
	yield fake
	app.dependency_overrides.pop(get_gemini_client, None)


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
	with TestClient(app) as client:
		yield client
