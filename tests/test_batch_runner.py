"""End-to-end tests for BatchRunner with a mocked transformation service."""

import threading
from unittest.mock import MagicMock, patch

import pytest

from mapper_rewrite.models import FailureReason, TemplateMode
from mapper_rewrite.orchestrator.runner import BatchRunner
from mapper_rewrite.transform.exceptions import (
    ConfigurationError,
    MalformedPromptError,
    ServiceCallError,
)

from conftest import CLEAN_MAPPER, CONFLICTED_MAPPER, FORMAT_TEMPLATE


# --- Fixtures ---


@pytest.fixture
def runner(mock_service, no_wait_limiter, reporter, fake_clock):
    return BatchRunner(
        mock_service,
        limiter=no_wait_limiter,
        reporter=reporter,
        throttle_seconds=0,
        clock=fake_clock,
    )


@pytest.fixture
def conflicted_and_empty(tmp_path):
    root = tmp_path / "mappers"
    root.mkdir()
    (root / "UserMapper.xml").write_text(CONFLICTED_MAPPER, encoding="utf-8")
    (root / "EmptyMapper.xml").write_bytes(b"")
    return root


# --- Happy path ---


def test_conflicted_and_empty_file(runner, mock_service, conflicted_and_empty):
    with patch("pathlib.Path.write_bytes", autospec=True) as mock_write:
        summary = runner.run([conflicted_and_empty], ".xml", FORMAT_TEMPLATE, "ours")

    assert mock_service.generate.call_count == 1
    assert mock_write.call_count == 1
    written_path = mock_write.call_args.args[0]
    assert written_path.name == "UserMapper.xml"
    assert summary.total_files == 2
    assert summary.attempted == 2
    assert summary.succeeded == 1
    assert summary.skipped == 1
    assert summary.failed == 0
    assert summary.conflicts_resolved == 1


def test_prompt_contains_kept_side_only(runner, mock_service, conflicted_and_empty):
    runner.run([conflicted_and_empty], ".xml", FORMAT_TEMPLATE, "ours")

    prompt = mock_service.generate.call_args.args[0]
    assert "SELECT * FROM users" in prompt
    assert "SELECT id, name" not in prompt
    assert "<<<<<<<" not in prompt


def test_files_overwritten_with_sanitized_reply(runner, fixture_tree):
    runner.run([fixture_tree], "xml", FORMAT_TEMPLATE, "theirs")

    assert (fixture_tree / "a.xml").read_text() == '<mapper rewritten="true"/>'
    assert (fixture_tree / "nested" / "b.XML").read_text() == '<mapper rewritten="true"/>'
    assert (fixture_tree / "c.sql").read_text() == "SELECT 1;\n"


def test_limiter_paused_between_files_only(runner, no_wait_limiter, tmp_path):
    for name in ("A.xml", "B.xml", "C.xml"):
        (tmp_path / name).write_text(CLEAN_MAPPER)

    summary = runner.run([tmp_path], ".xml", FORMAT_TEMPLATE, "ours")

    assert summary.attempted == 3
    assert no_wait_limiter.pause.call_count == 2


def test_files_processed_in_discovery_order(runner, mock_service, tmp_path):
    (tmp_path / "first.xml").write_text("<first/>")
    (tmp_path / "second.xml").write_text("<second/>")

    runner.run([tmp_path / "second.xml", tmp_path], ".xml", FORMAT_TEMPLATE, "ours")

    prompts = [call.args[0] for call in mock_service.generate.call_args_list]
    assert "<second/>" in prompts[0]
    assert "<first/>" in prompts[1]


def test_progress_and_summary_written(runner, progress_stream, fixture_tree):
    summary = runner.run([fixture_tree], ".xml", FORMAT_TEMPLATE, "ours")

    output = progress_stream.getvalue()
    assert "[1/2]" in output
    assert "[2/2]" in output
    assert "a.xml" in output
    assert "remaining" in output
    last_line = output.rstrip().splitlines()[-1]
    assert last_line.startswith("Done: 2/2 files attempted (2 succeeded, 0 skipped, 0 failed) in ")
    assert summary.elapsed_seconds > 0


def test_estimate_uses_configured_constants(mock_service, no_wait_limiter, reporter, fixture_tree):
    runner = BatchRunner(
        mock_service,
        limiter=no_wait_limiter,
        reporter=reporter,
        throttle_seconds=5,
        estimated_call_seconds=3,
    )
    summary = runner.run([fixture_tree], ".xml", FORMAT_TEMPLATE, "ours")
    assert summary.estimated_seconds == 16


def test_prefix_template_mode(mock_service, no_wait_limiter, reporter, fixture_tree):
    runner = BatchRunner(
        mock_service,
        template_mode=TemplateMode.PREFIX,
        limiter=no_wait_limiter,
        reporter=reporter,
        throttle_seconds=0,
    )
    runner.run([fixture_tree / "a.xml"], ".xml", "Rewrite the mapper below.", "ours")
    prompt = mock_service.generate.call_args.args[0]
    assert prompt.startswith("Rewrite the mapper below.\n\n--- XML FILE ---\n")


# --- Nothing to do ---


def test_no_matching_files(runner, mock_service, progress_stream, tmp_path):
    (tmp_path / "notes.txt").write_text("hello")

    summary = runner.run([tmp_path], ".xml", FORMAT_TEMPLATE, "ours")

    assert summary.total_files == 0
    assert summary.attempted == 0
    mock_service.generate.assert_not_called()
    assert "nothing to do" in progress_stream.getvalue()


# --- Failures ---


def test_service_failure_does_not_abort_batch(runner, mock_service, tmp_path):
    for name in ("A.xml", "B.xml", "C.xml"):
        (tmp_path / name).write_text(CLEAN_MAPPER)
    mock_service.generate.side_effect = [
        "<a/>",
        ServiceCallError("429 rate limited"),
        "<c/>",
    ]

    summary = runner.run([tmp_path], ".xml", FORMAT_TEMPLATE, "ours")

    assert summary.attempted == 3
    assert summary.succeeded == 2
    assert summary.failed == 1
    assert summary.failures[0].path.name == "B.xml"
    assert summary.failures[0].reason == FailureReason.SERVICE_ERROR
    assert (tmp_path / "B.xml").read_text() == CLEAN_MAPPER
    assert (tmp_path / "C.xml").read_text() == "<c/>"


def test_malformed_template_aborts_run(runner, mock_service, fixture_tree):
    with pytest.raises(MalformedPromptError):
        runner.run([fixture_tree], ".xml", "Rewrite this mapper.", "ours")
    mock_service.generate.assert_not_called()
    assert (fixture_tree / "a.xml").read_text() == CLEAN_MAPPER


@pytest.mark.parametrize(
    "roots, extension, template, strategy",
    [
        ([], ".xml", FORMAT_TEMPLATE, "ours"),
        (["."], "", FORMAT_TEMPLATE, "ours"),
        (["."], ".xml", "   ", "ours"),
        (["."], ".xml", FORMAT_TEMPLATE, "mine"),
    ],
)
def test_invalid_configuration_rejected_before_discovery(
    runner, mock_service, roots, extension, template, strategy
):
    with patch("mapper_rewrite.orchestrator.runner.discover_files") as mock_discover:
        with pytest.raises(ConfigurationError):
            runner.run(roots, extension, template, strategy)
    mock_discover.assert_not_called()
    mock_service.generate.assert_not_called()


# --- Cancellation ---


def test_cancel_before_start(mock_service, no_wait_limiter, reporter, fixture_tree):
    cancel = threading.Event()
    cancel.set()
    runner = BatchRunner(
        mock_service,
        limiter=no_wait_limiter,
        reporter=reporter,
        throttle_seconds=0,
        cancel_event=cancel,
    )

    summary = runner.run([fixture_tree], ".xml", FORMAT_TEMPLATE, "ours")

    assert summary.cancelled is True
    assert summary.attempted == 0
    assert summary.total_files == 2
    mock_service.generate.assert_not_called()


def test_cancel_during_throttle_stops_before_next_file(
    mock_service, reporter, progress_stream, fixture_tree
):
    limiter = MagicMock()
    limiter.pause.return_value = False
    runner = BatchRunner(mock_service, limiter=limiter, reporter=reporter, throttle_seconds=0)

    summary = runner.run([fixture_tree], ".xml", FORMAT_TEMPLATE, "ours")

    assert summary.cancelled is True
    assert summary.attempted == 1
    assert mock_service.generate.call_count == 1
    assert (fixture_tree / "nested" / "b.XML").read_text() == CONFLICTED_MAPPER
    assert progress_stream.getvalue().rstrip().endswith("[cancelled]")
