"""Structured draft recovery from raw model output.

Model responses are supposed to be a bare JSON object with title,
draftBody and tags, but they often arrive wrapped in a code fence, padded
with prose, or not as JSON at all. extract_draft() walks an ordered chain
of parsers, optionally asks the model to repair its own output, and as a
last resort derives a draft from the raw text. It always returns a
DraftRecord.
"""

import json
import re
from dataclasses import dataclass, field


PLACEHOLDER_TITLE = "タイトル（自動生成）"
ZERO_WIDTH_SPACE = "\u200b"
FENCED_BLOCK_RE = re.compile(r"```[A-Za-z]*\s*(.*?)\s*```", re.DOTALL)
FENCE_LINE_RE = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*(?:\r?\n|$)")
HEADING_MARKER_RE = re.compile(r"^#+\s*")
JSON_LABEL_RE = re.compile(r"^json$", re.IGNORECASE)


#============================================
@dataclass
class DraftRecord:
	title: str
	draft_body: str
	tags: list[str] = field(default_factory=list)

	def to_dict(self) -> dict:
		"""
		Return the output artifact mapping (draftBody key spelling).
		"""
		return {
			"title": self.title,
			"draftBody": self.draft_body,
			"tags": list(self.tags),
		}


#============================================
def _log(logger, message: str) -> None:
	if logger:
		logger(message)


#============================================
def coerce_json_string(value) -> str:
	"""
	Render a decoded JSON scalar the way it is spelled in JSON text.
	"""
	if value is None:
		return "null"
	if isinstance(value, bool):
		return "true" if value else "false"
	if isinstance(value, float) and value.is_integer():
		return str(int(value))
	return str(value)


#============================================
def dedupe_strings(values: list) -> list[str]:
	"""
	Coerce values to strings and drop repeats, keeping first-seen order.
	"""
	seen = set()
	result = []
	for value in values:
		text = coerce_json_string(value)
		if text in seen:
			continue
		seen.add(text)
		result.append(text)
	return result


#============================================
def parse_json_object(text: str) -> dict | None:
	"""
	Parse text as JSON and return it only when it is an object.
	"""
	try:
		value = json.loads(text)
	except (TypeError, ValueError, RecursionError):
		return None
	if not isinstance(value, dict):
		return None
	return value


#============================================
def parse_fenced_block(text: str) -> dict | None:
	"""
	Parse the inner content of the first triple-backtick block.
	"""
	match = FENCED_BLOCK_RE.search(text)
	if not match or not match.group(1):
		return None
	return parse_json_object(match.group(1).strip())


#============================================
def parse_brace_slice(text: str) -> dict | None:
	"""
	Parse the span from the first '{' through the last '}'.
	"""
	first_brace = text.find("{")
	last_brace = text.rfind("}")
	if first_brace == -1 or last_brace <= first_brace:
		return None
	return parse_json_object(text[first_brace:last_brace + 1])


#============================================
def extract_json_flexible(raw_text: str) -> dict | None:
	"""
	Try direct, fenced-block and brace-slice parsing in that order.

	Args:
		raw_text: model response text, possibly None.

	Returns:
		The first JSON object found, or None.
	"""
	text = (raw_text or "").strip().replace(ZERO_WIDTH_SPACE, "")
	for parser in (parse_json_object, parse_fenced_block, parse_brace_slice):
		parsed = parser(text)
		if parsed is not None:
			return parsed
	return None


#============================================
def sanitize_title(value) -> str:
	"""
	Strip markdown and fence debris from a title, never returning empty.
	"""
	title = "" if value is None else str(value).strip()
	title = FENCE_LINE_RE.sub("", title, count=1).strip()
	title = HEADING_MARKER_RE.sub("", title)
	title = title.strip('"').strip("'")
	title = title.strip("`")
	title = JSON_LABEL_RE.sub("", title).strip()
	if not title:
		return PLACEHOLDER_TITLE
	return title


#============================================
def _find_title_line(lines: list[str]) -> int:
	"""
	Return index of the first non-empty line that is not a code fence.
	"""
	first_nonempty = -1
	for index, line in enumerate(lines):
		clean = line.strip()
		if not clean:
			continue
		if first_nonempty < 0:
			first_nonempty = index
		if not clean.startswith("```"):
			return index
	return first_nonempty


#============================================
def derive_title_from_text(text: str) -> str:
	"""
	Pick a title from the first real line of free text.
	"""
	lines = (text or "").splitlines()
	index = _find_title_line(lines)
	if index < 0:
		return sanitize_title("")
	return sanitize_title(lines[index])


#============================================
def derive_draft_from_text(text: str) -> DraftRecord:
	"""
	Build a draft from unstructured text: title line plus remaining body.
	"""
	raw_text = text or ""
	lines = raw_text.splitlines()
	index = _find_title_line(lines)
	title = sanitize_title(lines[index] if index >= 0 else "")
	body = "\n".join(lines[index + 1:]).strip() if index >= 0 else ""
	if not body:
		body = raw_text
	return DraftRecord(title=title, draft_body=body, tags=[])


#============================================
def record_from_payload(payload: dict) -> DraftRecord | None:
	"""
	Convert a parsed JSON object into a DraftRecord.

	Returns None when the body is empty so the caller can fall back to
	deriving a draft from the raw text.
	"""
	body_value = payload.get("draftBody")
	draft_body = coerce_json_string(body_value).strip() if body_value else ""
	if not draft_body:
		return None
	tags_value = payload.get("tags")
	tags = dedupe_strings(tags_value) if isinstance(tags_value, list) else []
	return DraftRecord(
		title=sanitize_title(payload.get("title")),
		draft_body=draft_body,
		tags=tags,
	)


#============================================
def extract_draft(raw_text: str, repair_fn=None, logger=None) -> DraftRecord:
	"""
	Recover a DraftRecord from raw model output.

	Args:
		raw_text: primary generation response text.
		repair_fn: optional callable(raw_text) -> dict | None that asks the
			model to re-emit the JSON object. Errors it raises propagate.
		logger: optional callable(message) for progress lines.

	Returns:
		DraftRecord built from the first usable JSON object, or derived
		from raw_text when no structured parse succeeds.
	"""
	text = raw_text or ""
	parsed = extract_json_flexible(text)
	if parsed is None and repair_fn is not None:
		_log(logger, "Model output was not parseable JSON; requesting repair.")
		parsed = repair_fn(text)
		if parsed is not None and not isinstance(parsed, dict):
			parsed = None
	if parsed is not None:
		record = record_from_payload(parsed)
		if record is not None:
			return record
		_log(logger, "Parsed JSON had an empty draftBody; deriving from raw text.")
	else:
		_log(logger, "No JSON object recovered; deriving draft from raw text.")
	# derive from the primary response, not the repair response
	return derive_draft_from_text(text)


#============================================
def merge_tags(extracted: list[str], extra: list[str]) -> list[str]:
	"""
	Return the deduplicated union of extracted and caller-supplied tags.
	"""
	return dedupe_strings(list(extracted or []) + list(extra or []))


#============================================
def parse_tag_list(text: str) -> list[str]:
	"""
	Split a comma-separated tag string, dropping blanks.
	"""
	tags = []
	for part in (text or "").split(","):
		clean = part.strip()
		if clean:
			tags.append(clean)
	return tags
