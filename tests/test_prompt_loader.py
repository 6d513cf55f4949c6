import os
import sys


REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
PIPELINE_DIR = os.path.join(REPO_ROOT, "pipeline")
if PIPELINE_DIR not in sys.path:
	sys.path.insert(0, PIPELINE_DIR)

from notelib import prompt_loader


#============================================
def test_load_prompt_returns_string() -> None:
	"""
	load_prompt should return a non-empty string for an existing prompt file.
	"""
	text = prompt_loader.load_prompt("draft_prompt.txt")
	assert isinstance(text, str)
	assert "{{research_report}}" in text


#============================================
def test_load_prompt_missing_file_raises() -> None:
	"""
	load_prompt should raise FileNotFoundError for missing prompt files.
	"""
	raised = False
	try:
		prompt_loader.load_prompt("nonexistent_prompt_file.txt")
	except FileNotFoundError:
		raised = True
	assert raised


#============================================
def test_render_prompt_replaces_tokens() -> None:
	"""
	render_prompt should replace {{token}} placeholders with values.
	"""
	template = "Hello {{name}}, you have {{count}} items."
	result = prompt_loader.render_prompt(template, {
		"name": "Alice",
		"count": "42",
	})
	assert result == "Hello Alice, you have 42 items."


#============================================
def test_render_prompt_none_value_becomes_empty() -> None:
	"""
	None values should render as empty strings.
	"""
	assert prompt_loader.render_prompt("[{{x}}]", {"x": None}) == "[]"


#============================================
def test_render_prompt_empty_template() -> None:
	"""
	Empty template should render to empty string.
	"""
	assert prompt_loader.render_prompt("", {"x": "y"}) == ""
