"""Tests for prompt construction and template loading."""

import pytest

from mapper_rewrite.models import TemplateMode
from mapper_rewrite.transform.exceptions import ConfigurationError, MalformedPromptError
from mapper_rewrite.transform.prompt_builder import (
    PromptBuilder,
    file_type_header,
    load_template,
)

from conftest import FORMAT_TEMPLATE


# --- Format mode ---


def test_format_mode_substitutes_content():
    builder = PromptBuilder(TemplateMode.FORMAT)
    prompt = builder.build("Fix this:\n{content}\nThanks", "<mapper/>")
    assert prompt == "Fix this:\n<mapper/>\nThanks"


def test_format_mode_leaves_other_braces_alone():
    builder = PromptBuilder()
    prompt = builder.build(FORMAT_TEMPLATE, "<select>#{id}</select>")
    assert "keep #{params} intact" in prompt
    assert "<select>#{id}</select>" in prompt


def test_format_mode_content_with_placeholder_text_not_reexpanded():
    builder = PromptBuilder()
    prompt = builder.build("A {content} B", "x {content} y")
    assert prompt == "A x {content} y B"


def test_format_mode_without_slot_is_malformed():
    builder = PromptBuilder(TemplateMode.FORMAT)
    with pytest.raises(MalformedPromptError, match="found 0"):
        builder.build("No slot here", "<mapper/>")


def test_format_mode_with_two_slots_is_malformed():
    with pytest.raises(MalformedPromptError, match="found 2"):
        PromptBuilder().build("{content} and {content}", "<mapper/>")


def test_format_mode_accepts_printf_slot():
    prompt = PromptBuilder().build("Convert this mapper:\n%s\n", "<mapper/>")
    assert prompt == "Convert this mapper:\n<mapper/>\n"


def test_format_mode_prefers_content_slot_over_printf():
    prompt = PromptBuilder().build("Keep 100%s of {content}", "<mapper/>")
    assert prompt == "Keep 100%s of <mapper/>"


def test_format_mode_with_two_printf_slots_is_malformed():
    with pytest.raises(MalformedPromptError, match="found 2"):
        PromptBuilder().build("%s then %s", "<mapper/>")


def test_malformed_prompt_is_configuration_error():
    assert issubclass(MalformedPromptError, ConfigurationError)


# --- Prefix mode ---


def test_prefix_mode_appends_header_and_content():
    builder = PromptBuilder(TemplateMode.PREFIX)
    prompt = builder.build("Rewrite the file below.\n", "<mapper/>", "XML")
    assert prompt == "Rewrite the file below." + file_type_header("XML") + "<mapper/>"
    assert "--- XML FILE ---" in prompt


def test_prefix_mode_does_not_need_slot():
    builder = PromptBuilder("prefix")
    prompt = builder.build("No slot here", "body", "SQL")
    assert prompt.endswith("--- SQL FILE ---\nbody")


def test_prefix_mode_without_label():
    prompt = PromptBuilder(TemplateMode.PREFIX).build("T", "body")
    assert "--- TEXT FILE ---" in prompt


def test_unknown_mode_rejected():
    with pytest.raises(ValueError):
        PromptBuilder("inline")


# --- load_template ---


def test_load_template_reads_file(tmp_path):
    path = tmp_path / "prompt.txt"
    path.write_text(FORMAT_TEMPLATE, encoding="utf-8")
    assert load_template(path) == FORMAT_TEMPLATE


def test_load_template_missing_file(tmp_path):
    with pytest.raises(ConfigurationError, match="Failed to read prompt template"):
        load_template(tmp_path / "missing.txt")


def test_load_template_blank_file(tmp_path):
    path = tmp_path / "prompt.txt"
    path.write_text("  \n", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="is empty"):
        load_template(path)
