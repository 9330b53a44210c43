from __future__ import annotations
import json
import logging
import re
import httpx
from typing import Any, Dict, Optional
from .settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```json\s*([\s\S]*?)\s*```")
_FENCE_MARKERS = re.compile(r"```json\s*|\s*```")


def parse_json_response(text: str) -> Any:
	"""Parse a model reply expected to hold one JSON value.

	Prefers a ```json fenced block, else the whole reply. If that fails the
	fence markers are stripped from the full reply and parsing is retried
	once; a second failure propagates as ``json.JSONDecodeError``.
	"""
	match = _FENCED_JSON.search(text)
	candidate = match.group(1) if match else text
	try:
		return json.loads(candidate.strip())
	except json.JSONDecodeError:
		cleaned = _FENCE_MARKERS.sub("", text).strip()
		return json.loads(cleaned)


class GeminiClient:
	def __init__(
		self,
		api_key: Optional[str] = None,
		*,
		base_url: Optional[str] = None,
		model: Optional[str] = None,
		timeout: Optional[float] = None,
		transport: Optional[httpx.AsyncBaseTransport] = None,
		config: Optional[Settings] = None,
	) -> None:
		config = config or default_settings
		self.api_key = api_key or config.gemini_api_key
		if not self.api_key:
			raise ValueError("GEMINI_API_KEY is not configured")
		self.model = model or config.gemini_model
		self.provider = config.gemini_provider
		if self.provider == "vertex":
			region = config.vertex_region
			project = config.vertex_project or "placeholder-project"
			# Vertex AI Generative REST endpoint (API key via header)
			self.base_url = base_url or (
				f"https://{region}-aiplatform.googleapis.com/v1/projects/{project}/locations/{region}/publishers/google/models/{self.model}:generateContent"
			)
			self._auth_in_query = False
		else:
			# Google AI Studio (Generative Language API)
			self.base_url = base_url or f"https://generativelanguage.googleapis.com/v1beta/models/{self.model}:generateContent"
			self._auth_in_query = True
		self._client = httpx.AsyncClient(
			timeout=timeout if timeout is not None else config.gemini_timeout_seconds,
			transport=transport,
		)

	async def generate(self, prompt: str) -> str:
		payload: Dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
		params: Dict[str, Any] = {}
		headers: Dict[str, str] = {}
		if self._auth_in_query:
			params["key"] = self.api_key
		else:
			headers["x-goog-api-key"] = self.api_key
		r = await self._client.post(self.base_url, params=params, headers=headers, json=payload)
		r.raise_for_status()
		try:
			data = r.json()
			return data["candidates"][0]["content"]["parts"][0]["text"]
		except Exception as err:
			raise RuntimeError(f"Unexpected Gemini response: {r.text}") from err

	async def generate_json(self, prompt: str) -> Any:
		text = await self.generate(prompt)
		return parse_json_response(text)

	async def aclose(self) -> None:
		await self._client.aclose()
