"""
Gemini generate-content transport.
"""

from __future__ import annotations

# local repo modules
from notelib.llm_errors import GenerationError, TransportUnavailableError


class GeminiTransport:
	name = "Gemini"

	def __init__(
		self,
		model: str,
		api_key: str = "",
		client: object | None = None,
	) -> None:
		self.model = model
		self.api_key = api_key
		self._client = client

	def _get_client(self) -> object:
		"""
		Build the google-genai client on first use.
		"""
		if self._client is not None:
			return self._client
		if not self.api_key:
			raise TransportUnavailableError(
				"GEMINI_API_KEY (or GOOGLE_GENERATIVE_AI_API_KEY) is required."
			)
		try:
			from google import genai
		except ImportError as exc:
			raise TransportUnavailableError(
				"google-genai is required for the Gemini backend."
			) from exc
		self._client = genai.Client(api_key=self.api_key)
		return self._client

	def _build_config(
		self,
		max_tokens: int,
		system_instruction: str,
		temperature: float,
		response_schema: dict | None,
	) -> object:
		from google.genai import types

		config_values: dict[str, object] = {
			"temperature": float(temperature),
			"max_output_tokens": int(max_tokens),
		}
		if system_instruction:
			config_values["system_instruction"] = system_instruction
		if response_schema is not None:
			config_values["response_mime_type"] = "application/json"
			config_values["response_schema"] = response_schema
		return types.GenerateContentConfig(**config_values)

	def generate(
		self,
		prompt: str,
		*,
		purpose: str,
		max_tokens: int,
		system_instruction: str = "",
		temperature: float = 0.2,
		response_schema: dict | None = None,
	) -> str:
		client = self._get_client()
		config = self._build_config(
			max_tokens,
			system_instruction,
			temperature,
			response_schema,
		)
		try:
			response = client.models.generate_content(
				model=self.model,
				contents=prompt,
				config=config,
			)
		except Exception as exc:
			raise GenerationError(f"Gemini call failed ({purpose}): {exc}") from exc
		text = getattr(response, "text", None)
		if not text:
			return ""
		return str(text)
