import os
import sys

import pytest


REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
PIPELINE_DIR = os.path.join(REPO_ROOT, "pipeline")
if PIPELINE_DIR not in sys.path:
	sys.path.insert(0, PIPELINE_DIR)

from notelib import draft_extractor
from notelib import draft_llm
from notelib.llm_errors import GenerationError


#============================================
class FakeClient:
	def __init__(self, responses):
		self.responses = list(responses)
		self.calls = []

	def generate(self, prompt, *, purpose, max_tokens, system_instruction="",
			temperature=0.2, response_schema=None):
		self.calls.append(
			{
				"prompt": prompt,
				"purpose": purpose,
				"max_tokens": max_tokens,
				"system_instruction": system_instruction,
				"temperature": temperature,
				"response_schema": response_schema,
			}
		)
		response = self.responses.pop(0)
		if isinstance(response, Exception):
			raise response
		return response


#============================================
def test_generate_draft_text_passes_schema_and_system_prompt() -> None:
	"""
	Primary call should carry the schema and drafting system prompt.
	"""
	client = FakeClient(["raw"])
	text = draft_llm.generate_draft_text(client, "the prompt", 0.7, 8192)
	assert text == "raw"
	call = client.calls[0]
	assert call["prompt"] == "the prompt"
	assert call["temperature"] == 0.7
	assert call["max_tokens"] == 8192
	assert call["response_schema"] is draft_llm.POST_SCHEMA
	assert "draftBody" in call["system_instruction"]


#============================================
def test_repair_draft_json_uses_zero_temperature() -> None:
	"""
	Repair should run deterministically and parse fenced output.
	"""
	client = FakeClient(['```json\n{"title":"R","draftBody":"B","tags":[]}\n```'])
	parsed = draft_llm.repair_draft_json(client, "broken output", 2048)
	assert parsed == {"title": "R", "draftBody": "B", "tags": []}
	call = client.calls[0]
	assert call["temperature"] == 0.0
	assert call["max_tokens"] == 2048
	assert call["prompt"] == "broken output"
	assert call["response_schema"] is draft_llm.POST_SCHEMA


#============================================
def test_repair_draft_json_returns_none_for_prose() -> None:
	"""
	Repair output without JSON should yield None.
	"""
	client = FakeClient(["I cannot do that."])
	assert draft_llm.repair_draft_json(client, "broken", 100) is None


#============================================
def test_make_repair_fn_derives_from_original_text() -> None:
	"""
	A junk repair response should not leak into the derived draft.
	"""
	client = FakeClient(["Repair Junk Title\nrepair junk body"])
	messages = []
	repair_fn = draft_llm.make_repair_fn(client, 2048, logger=messages.append)
	record = draft_extractor.extract_draft(
		"Original Title\nOriginal body",
		repair_fn=repair_fn,
	)
	assert record.title == "Original Title"
	assert record.draft_body == "Original body"
	assert any("no JSON" in message for message in messages)


#============================================
def test_repair_transport_error_propagates() -> None:
	"""
	Transport failure during repair is fatal and must propagate.
	"""
	client = FakeClient([GenerationError("network down")])
	repair_fn = draft_llm.make_repair_fn(client, 2048)
	with pytest.raises(GenerationError):
		draft_extractor.extract_draft("not json", repair_fn=repair_fn)
