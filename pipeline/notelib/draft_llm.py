from notelib import draft_extractor
from notelib import prompt_loader
from notelib.gemini_transport import GeminiTransport


REPAIR_TEMPERATURE = 0.0
POST_SCHEMA = {
	"type": "OBJECT",
	"properties": {
		"title": {"type": "STRING"},
		"draftBody": {"type": "STRING"},
		"tags": {
			"type": "ARRAY",
			"items": {"type": "STRING"},
		},
	},
	"required": ["title", "draftBody", "tags"],
}


#============================================
def describe_llm_execution_path(model_name: str) -> str:
	"""
	Describe configured model call order.
	"""
	return f"gemini(model={model_name}) -> json repair on parse failure"


#============================================
def create_llm_client(model_name: str, api_key: str) -> GeminiTransport:
	"""
	Create the Gemini transport used for drafting and repair.
	"""
	return GeminiTransport(model=model_name, api_key=api_key)


#============================================
def generate_draft_text(
	client,
	prompt: str,
	temperature: float,
	max_tokens: int,
) -> str:
	"""
	Run the primary draft generation and return raw response text.
	"""
	system_prompt = prompt_loader.load_prompt("draft_system.txt").strip()
	return client.generate(
		prompt,
		purpose="draft generation",
		max_tokens=max_tokens,
		system_instruction=system_prompt,
		temperature=temperature,
		response_schema=POST_SCHEMA,
	)


#============================================
def repair_draft_json(client, raw_text: str, max_tokens: int) -> dict | None:
	"""
	Ask the model to re-emit raw_text as the bare draft JSON object.
	"""
	system_prompt = prompt_loader.load_prompt("draft_repair_system.txt").strip()
	repaired = client.generate(
		str(raw_text),
		purpose="draft json repair",
		max_tokens=max_tokens,
		system_instruction=system_prompt,
		temperature=REPAIR_TEMPERATURE,
		response_schema=POST_SCHEMA,
	)
	parsed = draft_extractor.parse_json_object(repaired or "")
	if parsed is not None:
		return parsed
	return draft_extractor.extract_json_flexible(repaired or "")


#============================================
def make_repair_fn(client, max_tokens: int, logger=None):
	"""
	Bind client and limits into a repair callable for extract_draft().
	"""
	def repair(raw_text: str) -> dict | None:
		parsed = repair_draft_json(client, raw_text, max_tokens)
		if logger:
			status = "recovered JSON" if parsed is not None else "returned no JSON"
			logger(f"Repair call {status}.")
		return parsed

	return repair
