#!/usr/bin/env python3
import argparse
import json
import os
import sys
from datetime import datetime

from notelib import draft_extractor
from notelib import draft_llm
from notelib import pipeline_settings
from notelib import prompt_loader

try:
	import rich.console
except ModuleNotFoundError as error:
	raise RuntimeError(
		"Missing dependency: rich. Install with: pip install -e ."
	) from error


DEFAULT_RESEARCH_PATH = ".note-artifacts/research.md"
DEFAULT_OUTPUT_PATH = ".note-artifacts/draft.json"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 8192
DEFAULT_REPAIR_MAX_TOKENS = 2048
RICH_CONSOLE = rich.console.Console(stderr=True)


#============================================
def log_style(message: str) -> str:
	"""
	Pick a rich style from keywords in one progress message.
	"""
	lower = message.lower()
	if ("failed" in lower) or ("error" in lower):
		return "bold red"
	if ("repair" in lower) or ("deriving" in lower) or ("fallback" in lower):
		return "yellow"
	if "wrote " in lower:
		return "green"
	return "cyan"


#============================================
def log_step(message: str) -> None:
	"""
	Print one timestamped progress line with color.
	"""
	now_text = datetime.now().strftime("%H:%M:%S")
	line = f"[research_to_draft {now_text}] {message}"
	style = log_style(message)
	RICH_CONSOLE.print(line, style=style, markup=False, highlight=False)


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(
		description="Generate a structured blog draft JSON from a research document."
	)
	parser.add_argument(
		"--research",
		default=None,
		help=f"Path to research Markdown input (default: {DEFAULT_RESEARCH_PATH}).",
	)
	parser.add_argument(
		"--output",
		default=None,
		help=f"Path to output draft JSON (default: {DEFAULT_OUTPUT_PATH}).",
	)
	parser.add_argument(
		"--settings",
		default="settings.yaml",
		help="YAML settings path for LLM defaults.",
	)
	parser.add_argument(
		"--llm-model",
		default=None,
		help="Model override (defaults from WRITE_MODEL, then settings.yaml).",
	)
	parser.add_argument(
		"--llm-max-tokens",
		type=int,
		default=None,
		help="Maximum generation tokens for the draft call (defaults from settings.yaml).",
	)
	parser.add_argument(
		"--temperature",
		type=float,
		default=None,
		help="Sampling temperature for the draft call (defaults from settings.yaml).",
	)
	parser.add_argument(
		"--tags",
		default="",
		help="Extra comma-separated tags, merged with INPUT_TAGS.",
	)
	args = parser.parse_args(argv)
	return args


#============================================
def read_research_markdown(path: str) -> str:
	"""
	Load the research document that grounds the draft.
	"""
	if not os.path.isfile(path):
		raise FileNotFoundError(f"Failed to read research markdown at {path}")
	with open(path, "r", encoding="utf-8") as handle:
		return handle.read()


#============================================
def build_draft_prompt(inputs: pipeline_settings.DraftInputs, research_report: str) -> str:
	"""
	Render the labeled draft prompt from run inputs and research text.
	"""
	template = prompt_loader.load_prompt("draft_prompt.txt")
	# research text goes last so tokens inside it are left alone
	return prompt_loader.render_prompt(
		template,
		{
			"theme": inputs.theme,
			"target": inputs.target,
			"message": inputs.message,
			"cta": inputs.cta,
			"research_report": research_report,
		},
	).rstrip("\n")


#============================================
def write_draft_json(record: draft_extractor.DraftRecord, path: str) -> str:
	"""
	Write the draft record as pretty JSON and return the absolute path.
	"""
	output_path = os.path.abspath(path)
	output_dir = os.path.dirname(output_path)
	if output_dir:
		os.makedirs(output_dir, exist_ok=True)
	with open(output_path, "w", encoding="utf-8") as handle:
		json.dump(record.to_dict(), handle, ensure_ascii=False, indent=2)
	return output_path


#============================================
def generate_draft(
	client,
	prompt: str,
	temperature: float,
	max_tokens: int,
	repair_max_tokens: int,
	logger=None,
) -> draft_extractor.DraftRecord:
	"""
	Run the draft call and recover a structured record from its output.
	"""
	raw_text = draft_llm.generate_draft_text(client, prompt, temperature, max_tokens)
	if logger:
		logger(f"Draft call returned {len(raw_text)} characters.")
	repair_fn = draft_llm.make_repair_fn(client, repair_max_tokens, logger=logger)
	return draft_extractor.extract_draft(raw_text, repair_fn=repair_fn, logger=logger)


#============================================
def create_llm_client(model_name: str, api_key: str):
	"""
	Create the model client for this run.
	"""
	return draft_llm.create_llm_client(model_name, api_key)


#============================================
def run(argv: list[str] | None = None, environ: dict | None = None) -> int:
	"""
	Run the draft stage and return a process exit status.
	"""
	args = parse_args(argv)
	env = os.environ if environ is None else environ
	try:
		settings, settings_path = pipeline_settings.load_settings(args.settings)
		research_path = args.research or pipeline_settings.get_setting_str(
			settings, ["paths", "research"], DEFAULT_RESEARCH_PATH
		)
		output_path = args.output or pipeline_settings.get_setting_str(
			settings, ["paths", "output"], DEFAULT_OUTPUT_PATH
		)
		model_name = pipeline_settings.get_model_name(settings, env)
		if args.llm_model is not None and args.llm_model.strip():
			model_name = args.llm_model.strip()
		max_tokens = args.llm_max_tokens
		if max_tokens is None:
			max_tokens = pipeline_settings.get_setting_int(
				settings, ["llm", "max_output_tokens"], DEFAULT_MAX_TOKENS
			)
		repair_max_tokens = pipeline_settings.get_setting_int(
			settings, ["llm", "repair_max_output_tokens"], DEFAULT_REPAIR_MAX_TOKENS
		)
		temperature = args.temperature
		if temperature is None:
			temperature = pipeline_settings.get_setting_float(
				settings, ["llm", "temperature"], DEFAULT_TEMPERATURE
			)
		if max_tokens < 1 or repair_max_tokens < 1:
			raise RuntimeError("llm max tokens must be >= 1")
		if not 0.0 <= temperature <= 2.0:
			raise RuntimeError("temperature must be between 0 and 2")

		api_key = pipeline_settings.get_api_key(env)
		if not api_key:
			raise RuntimeError("GEMINI_API_KEY (or GOOGLE_GENERATIVE_AI_API_KEY) is required")

		log_step(f"Using settings file: {settings_path}")
		log_step(
			"Using LLM settings: "
			+ f"model={model_name}, temperature={temperature}, max_tokens={max_tokens}, "
			+ f"repair_max_tokens={repair_max_tokens}"
		)
		log_step(
			"LLM execution path for this run: "
			+ draft_llm.describe_llm_execution_path(model_name)
		)
		inputs = pipeline_settings.load_draft_inputs(env)
		extra_tags = draft_extractor.merge_tags(
			inputs.input_tags,
			draft_extractor.parse_tag_list(args.tags),
		)
		log_step(f"Reading research markdown from {os.path.abspath(research_path)}")
		research_report = read_research_markdown(research_path)
		prompt = build_draft_prompt(inputs, research_report)
		client = create_llm_client(model_name, api_key)
		log_step("Generating draft.")
		record = generate_draft(
			client,
			prompt,
			temperature=temperature,
			max_tokens=max_tokens,
			repair_max_tokens=repair_max_tokens,
			logger=log_step,
		)
	except (RuntimeError, OSError) as error:
		log_step(f"Draft generation failed: {error}")
		log_step("No draft file written.")
		return 1

	if extra_tags:
		record.tags = draft_extractor.merge_tags(record.tags, extra_tags)
	try:
		written_path = write_draft_json(record, output_path)
	except OSError as error:
		log_step(f"Failed to write draft: {error}")
		return 1
	log_step(
		f"Wrote {written_path} (title={record.title!r}, "
		+ f"{len(record.draft_body)} body chars, {len(record.tags)} tags)"
	)
	return 0


#============================================
def main() -> None:
	"""
	Generate a draft JSON from research markdown with the configured model.
	"""
	sys.exit(run())


if __name__ == "__main__":
	main()
