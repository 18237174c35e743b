"""Tests for pageinfer.cli module."""

from __future__ import annotations

import json
import os
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from pageinfer.cli import _format_answer, _parse_args, _run_config, _write_output, main
from pageinfer.search import SearchError, SearchHit, SearchResponse

JOB_HTML = """
<html><body>
  <h1 class="job-details-jobs-unified-top-card__job-title">Data Engineer</h1>
  <div class="job-details-jobs-unified-top-card__company-name">Acme</div>
  <div class="jobs-description__content">Design and run the batch pipelines for billing data.</div>
</body></html>
"""


@pytest.fixture(autouse=True)
def _no_env_files():
    with patch("pageinfer.cli._load_config"):
        yield


class TestParseArgs:
    def test_extract_defaults(self):
        args = _parse_args(["extract", "https://a.example"])
        assert args.command == "extract"
        assert args.metadata is False
        assert args.links is False
        assert args.html is None
        assert args.json_output is False

    def test_ask_question_optional(self):
        args = _parse_args(["ask", "https://a.example"])
        assert args.question is None
        assert args.model is None

    def test_search_max_results(self):
        args = _parse_args(["search", "python", "--max-results", "7"])
        assert args.max_results == 7

    def test_command_required(self):
        with pytest.raises(SystemExit):
            _parse_args([])


class TestRunConfig:
    def test_no_overrides(self):
        assert _run_config(_parse_args(["extract", "https://a.example"])) is None

    def test_overrides_applied(self):
        args = _parse_args(
            ["extract", "https://a.example", "--wait-for", "css:.jobs", "--delay", "2"]
        )
        config = _run_config(args)
        assert config.wait_for == "css:.jobs"
        assert config.delay_before_return_html == 2.0


class TestFormatAnswer:
    def test_answer_only(self):
        assert _format_answer({"answer": "Yes."}) == "Yes."

    def test_sources_listed(self):
        text = _format_answer(
            {
                "answer": "Yes.",
                "sources": [
                    {"title": "Python.org - Home", "url": None},
                    {"title": "Docs", "url": "https://docs.python.org"},
                ],
            }
        )
        assert text.split("\n") == [
            "Yes.",
            "",
            "Sources:",
            "- Python.org - Home",
            "- Docs (https://docs.python.org)",
        ]


class TestWriteOutput:
    def test_stdout(self, capsys):
        _write_output("hello", None)
        assert capsys.readouterr().out == "hello\n"

    def test_file_with_parents(self, tmp_path):
        target = tmp_path / "out" / "page.txt"
        _write_output("hello", str(target))
        assert target.read_text(encoding="utf-8") == "hello"


class TestExtractCommand:
    def test_from_html_file(self, tmp_path, capsys):
        html = tmp_path / "job.html"
        html.write_text(JOB_HTML, encoding="utf-8")

        code = main(["extract", "https://www.linkedin.com/jobs/view/1", "--html", str(html)])

        assert code == 0
        assert capsys.readouterr().out == (
            "Job Title: Data Engineer\n\nCompany: Acme\n\n"
            "Description:\n\nDesign and run the batch pipelines for billing data.\n"
        )

    def test_json_to_file(self, tmp_path):
        html = tmp_path / "job.html"
        html.write_text(JOB_HTML, encoding="utf-8")
        out = tmp_path / "job.json"

        code = main(
            [
                "extract",
                "https://www.linkedin.com/jobs/view/1",
                "--html",
                str(html),
                "--json",
                "-o",
                str(out),
            ]
        )

        assert code == 0
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["websiteType"] == "linkedin"
        assert data["content"].startswith("Job Title: Data Engineer")

    def test_live_page_forwards_options(self, capsys):
        fake = AsyncMock(return_value={"content": "Page text", "websiteType": "general"})
        with patch("pageinfer.extract_page_async", fake):
            code = main(["extract", "https://a.example", "--links", "--storage-state", "state.json"])

        assert code == 0
        assert capsys.readouterr().out == "Page text\n"
        kwargs = fake.call_args.kwargs
        assert kwargs["options"].include_links is True
        assert kwargs["auth"].storage_state == "state.json"
        assert kwargs["run_config"] is None

    def test_extraction_error(self):
        fake = AsyncMock(return_value={"error": "This page is not supported"})
        with patch("pageinfer.extract_page_async", fake):
            assert main(["extract", "chrome://settings"]) == 1

    def test_missing_html_file(self, tmp_path):
        assert main(["extract", "https://a.example", "--html", str(tmp_path / "nope.html")]) == 1


class TestAskCommand:
    def test_prints_answer(self, capsys):
        fake = AsyncMock(
            return_value={
                "answer": "A blog post.",
                "sources": [{"title": "Result", "url": None, "snippet": "Result"}],
                "model": "gpt-4o-mini",
                "websiteType": "general",
            }
        )
        with patch("pageinfer.ask_page_async", fake):
            code = main(["ask", "https://a.example", "What is it?", "--model", "gpt-4o"])

        assert code == 0
        assert capsys.readouterr().out == "A blog post.\n\nSources:\n- Result\n"
        assert fake.call_args.args == ("https://a.example", "What is it?")
        assert fake.call_args.kwargs["model"] == "gpt-4o"

    def test_error_as_json(self, capsys):
        fake = AsyncMock(return_value={"error": "API key not found."})
        with patch("pageinfer.ask_page_async", fake):
            code = main(["ask", "https://a.example", "--json"])

        assert code == 1
        assert json.loads(capsys.readouterr().out) == {"error": "API key not found."}


class TestSearchCommand:
    def test_report(self, capsys):
        response = SearchResponse(query="q", hits=[SearchHit(title="T", url="https://t.example")])
        with patch("pageinfer.search.search_async", AsyncMock(return_value=response)):
            code = main(["search", "q"])

        assert code == 0
        assert "1. T\n   https://t.example" in capsys.readouterr().out

    def test_json(self, capsys):
        response = SearchResponse(query="q", hits=[SearchHit(title="T", url="https://t.example")])
        with patch("pageinfer.search.search_async", AsyncMock(return_value=response)):
            code = main(["search", "q", "--json"])

        assert code == 0
        assert json.loads(capsys.readouterr().out)["results"][0]["title"] == "T"

    def test_search_error(self):
        failure = AsyncMock(side_effect=SearchError("Request failed: refused", query="q"))
        with patch("pageinfer.search.search_async", failure):
            assert main(["search", "q"]) == 1


class TestMain:
    def test_dev_flag_sets_env(self, monkeypatch):
        monkeypatch.setenv("PAGEINFER_DEV_MODE", "0")
        response = SearchResponse(query="q")
        with patch("pageinfer.search.search_async", AsyncMock(return_value=response)):
            main(["--dev", "search", "q"])

        assert os.environ["PAGEINFER_DEV_MODE"] == "1"

    def test_keyboard_interrupt(self):
        with patch("pageinfer.cli.asyncio.run", MagicMock(side_effect=KeyboardInterrupt)):
            assert main(["search", "q"]) == 130

    def test_loads_config_before_running(self):
        response = SearchResponse(query="q")
        with patch("pageinfer.cli._load_config") as load, patch(
            "pageinfer.search.search_async", AsyncMock(return_value=response)
        ):
            main(["search", "q"])

        load.assert_called_once_with()
