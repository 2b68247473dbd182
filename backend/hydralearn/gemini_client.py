from __future__ import annotations
import logging
import httpx
from typing import Any, Dict, List, Optional, Protocol
from .errors import UpstreamUnavailable
from .settings import settings


logger = logging.getLogger(__name__)

Message = Dict[str, str]


class TextGenerator(Protocol):
	async def generate(self, messages: List[Message]) -> str: ...


def build_messages(prompt: str, system_prompt: Optional[str] = None) -> List[Message]:
	messages: List[Message] = []
	if system_prompt:
		messages.append({"role": "system", "content": system_prompt})
	messages.append({"role": "user", "content": prompt})
	return messages


async def generate_text(llm: TextGenerator, prompt: str, system_prompt: Optional[str] = None) -> str:
	return await llm.generate(build_messages(prompt, system_prompt))


class GeminiClient:
	def __init__(
		self,
		api_key: Optional[str] = None,
		*,
		base_url: Optional[str] = None,
		model: Optional[str] = None,
		transport: Optional[httpx.AsyncBaseTransport] = None,
	) -> None:
		self.api_key = api_key or settings.gemini_api_key
		self.model = model or settings.gemini_model
		self.provider = settings.gemini_provider
		if self.provider == "vertex":
			region = settings.vertex_region
			project = settings.vertex_project or "placeholder-project"
			# Vertex AI Generative REST endpoint (API key via header)
			self.base_url = base_url or (
				f"https://{region}-aiplatform.googleapis.com/v1/projects/{project}/locations/{region}/publishers/google/models/{self.model}:generateContent"
			)
			self._auth_in_query = False
		else:
			# Google AI Studio (Generative Language API)
			self.base_url = base_url or f"https://generativelanguage.googleapis.com/v1beta/models/{self.model}:generateContent"
			self._auth_in_query = True
		timeout = settings.gemini_timeout_seconds
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

	@property
	def configured(self) -> bool:
		return bool(self.api_key) or self._fallback_enabled

	async def generate(self, messages: List[Message]) -> str:
		"""Send an ordered chat transcript and return the model's reply text.

		System messages become Gemini's ``systemInstruction``; assistant turns are
		sent with the ``model`` role. Transport failures, 429/5xx responses and
		unparseable payloads raise :class:`UpstreamUnavailable`.
		"""
		payload = self._gemini_payload(messages)
		last_error: Optional[Exception] = None
		if self.api_key:
			try:
				return await self._post_payload(payload)
			except (httpx.HTTPError, ValueError) as err:
				last_error = err
				logger.warning("Gemini call failed: %s", err)
		else:
			last_error = RuntimeError("GEMINI_API_KEY is not configured")
		if not self._fallback_enabled:
			raise UpstreamUnavailable("text generation backend unavailable") from last_error
		return await self._fallback_generate(messages, last_error)

	@staticmethod
	def _gemini_payload(messages: List[Message]) -> Dict[str, Any]:
		system_parts: List[Dict[str, str]] = []
		contents: List[Dict[str, Any]] = []
		for message in messages:
			role = message.get("role", "user")
			text = message.get("content", "")
			if role == "system":
				system_parts.append({"text": text})
				continue
			contents.append({"role": "model" if role == "assistant" else "user", "parts": [{"text": text}]})
		payload: Dict[str, Any] = {"contents": contents}
		if system_parts:
			payload["systemInstruction"] = {"parts": system_parts}
		return payload

	async def _post_payload(self, payload: Dict[str, Any]) -> str:
		params: Dict[str, Any] = {}
		headers: Dict[str, str] = {}
		if self._auth_in_query:
			params["key"] = self.api_key
		else:
			headers["x-goog-api-key"] = self.api_key or ""
		r = await self._client.post(self.base_url, params=params, headers=headers, json=payload)
		r.raise_for_status()
		try:
			data = r.json()
			return data["candidates"][0]["content"]["parts"][0]["text"]
		except (KeyError, IndexError, TypeError, ValueError) as err:
			raise ValueError(f"Unexpected Gemini response: {r.text[:200]}") from err

	async def aclose(self) -> None:
		await self._client.aclose()
		if self._fallback_client is not None:
			await self._fallback_client.aclose()

	async def _fallback_generate(self, messages: List[Message], primary_error: Optional[Exception]) -> str:
		if not self._fallback_client or not self._openrouter_api_key:
			raise UpstreamUnavailable("Fallback requested but OpenRouter is not configured") from primary_error
		headers = {k: v for k, v in self._openrouter_headers.items() if v}
		payload: Dict[str, Any] = {
			"model": self._openrouter_model,
			"messages": messages,
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
		except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as fallback_err:
			logger.warning("OpenRouter fallback failed: %s", fallback_err)
			raise UpstreamUnavailable(
				f"Gemini primary call failed ({primary_error}); fallback via OpenRouter also failed"
			) from fallback_err
