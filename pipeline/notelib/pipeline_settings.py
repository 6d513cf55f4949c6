import os
from dataclasses import dataclass, field

import yaml

from notelib import draft_extractor


DEFAULT_MODEL = "gemini-2.5-flash-lite"
API_KEY_ENV_NAMES = ("GEMINI_API_KEY", "GOOGLE_GENERATIVE_AI_API_KEY")


#============================================
@dataclass
class DraftInputs:
	theme: str = ""
	target: str = ""
	message: str = ""
	cta: str = ""
	input_tags: list[str] = field(default_factory=list)


#============================================
def get_repo_root() -> str:
	"""
	Return repository root based on this module location.
	"""
	module_dir = os.path.dirname(os.path.abspath(__file__))
	pipeline_dir = os.path.dirname(module_dir)
	return os.path.dirname(pipeline_dir)


#============================================
def resolve_settings_path(path_text: str) -> str:
	"""
	Resolve settings path against cwd first, then repo root.
	"""
	if os.path.isabs(path_text):
		return path_text
	cwd_candidate = os.path.abspath(path_text)
	if os.path.isfile(cwd_candidate):
		return cwd_candidate
	repo_candidate = os.path.join(get_repo_root(), path_text)
	return os.path.abspath(repo_candidate)


#============================================
def load_settings(path_text: str) -> tuple[dict, str]:
	"""
	Load YAML settings dict and return it with resolved path.
	"""
	resolved_path = resolve_settings_path(path_text)
	if not os.path.isfile(resolved_path):
		return {}, resolved_path
	with open(resolved_path, "r", encoding="utf-8") as handle:
		try:
			data = yaml.safe_load(handle.read())
		except yaml.YAMLError as error:
			raise RuntimeError(f"Invalid YAML in settings file {resolved_path}: {error}") from error
	if data is None:
		return {}, resolved_path
	if not isinstance(data, dict):
		raise RuntimeError(f"Settings file must contain a mapping: {resolved_path}")
	return data, resolved_path


#============================================
def get_nested_value(settings: dict, keys: list[str], default_value):
	"""
	Read nested mapping value by key path.
	"""
	current = settings
	for key in keys:
		if not isinstance(current, dict):
			return default_value
		if key not in current:
			return default_value
		current = current[key]
	return current


#============================================
def get_setting_str(settings: dict, keys: list[str], default_value: str) -> str:
	"""
	Read a string setting from nested path with fallback.
	"""
	value = get_nested_value(settings, keys, default_value)
	if value is None:
		return default_value
	return str(value).strip()


#============================================
def get_setting_int(settings: dict, keys: list[str], default_value: int) -> int:
	"""
	Read an integer setting from nested path with fallback.
	"""
	value = get_nested_value(settings, keys, default_value)
	if value is None:
		return default_value
	try:
		return int(value)
	except ValueError as error:
		raise RuntimeError(f"Invalid integer for setting path {'.'.join(keys)}: {value}") from error


#============================================
def get_setting_float(settings: dict, keys: list[str], default_value: float) -> float:
	"""
	Read a float setting from nested path with fallback.
	"""
	value = get_nested_value(settings, keys, default_value)
	if value is None:
		return default_value
	try:
		return float(value)
	except ValueError as error:
		raise RuntimeError(f"Invalid number for setting path {'.'.join(keys)}: {value}") from error


#============================================
def get_api_key(environ: dict | None = None) -> str:
	"""
	Return the Gemini credential from the environment, or empty string.
	"""
	env = os.environ if environ is None else environ
	for name in API_KEY_ENV_NAMES:
		value = (env.get(name) or "").strip()
		if value:
			return value
	return ""


#============================================
def get_model_name(settings: dict, environ: dict | None = None) -> str:
	"""
	Resolve model name: WRITE_MODEL env, then llm.model, then default.
	"""
	env = os.environ if environ is None else environ
	env_value = (env.get("WRITE_MODEL") or "").strip()
	if env_value:
		return env_value
	return get_setting_str(settings, ["llm", "model"], DEFAULT_MODEL) or DEFAULT_MODEL


#============================================
def load_draft_inputs(environ: dict | None = None) -> DraftInputs:
	"""
	Read prompt inputs and extra tags from the environment.
	"""
	env = os.environ if environ is None else environ
	return DraftInputs(
		theme=env.get("THEME", ""),
		target=env.get("TARGET", ""),
		message=env.get("MESSAGE", ""),
		cta=env.get("CTA", ""),
		input_tags=draft_extractor.parse_tag_list(env.get("INPUT_TAGS", "")),
	)
