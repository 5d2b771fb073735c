"""Tests for the seo CLI entry point."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from seoeco.cli.seo import seo_cli
from seoeco.core.auth import TokenStore
from seoeco.models.api import AuthResponse, ResultItem, ResultsResponse, User


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    monkeypatch.delenv("SEOECO_API_URL", raising=False)
    monkeypatch.delenv("SEOECO_DEMO_VIDEO_URL", raising=False)
    with patch("seoeco.logging_config.setup_logging"):
        yield


@pytest.fixture
def cli_config(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(
        "api:\n"
        "  url: http://backend.test/api\n"
        "stream:\n"
        "  retry_attempts: 0\n"
        "  retry_delay_seconds: 0\n"
        "auth:\n"
        f"  store_path: {tmp_path / 'auth.json'}\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def signed_in(tmp_path: Path) -> TokenStore:
    store = TokenStore(tmp_path / "auth.json")
    store.save("tok-123", User(id="u1", email="a@b.test"))
    return store


def invoke(cli_config: Path, *args: str, **kwargs):
    return CliRunner().invoke(seo_cli, ["--config", str(cli_config), *args], **kwargs)


@pytest.fixture
def fake_transport(recorder):
    opened = []

    def open_stream(api_url, params, connect_timeout=10):
        opened.append(api_url)
        return recorder(params)

    with patch("seoeco.core.session.open_event_stream", side_effect=open_stream):
        yield opened


class TestAnalyze:
    def test_completed_run(self, cli_config, recorder, fake_transport, make_event):
        recorder.script([
            make_event("agent_start", agent="crawl"),
            make_event("agent_complete", agent="crawl", url="https://example.com",
                       formatted={"title": "Crawl Results", "status": "good", "issues": []}),
            make_event("complete"),
        ])
        result = invoke(cli_config, "analyze", "https://example.com", "-a", "crawl")
        assert result.exit_code == 0, result.output
        assert "Starting crawl..." in result.output
        assert "Analysis complete!" in result.output
        assert "COMPLETED" in result.output
        assert fake_transport == ["http://backend.test/api"]
        assert recorder.streams[0].params["agents"] == "crawl"

    def test_failed_run_exits_nonzero(self, cli_config, recorder, fake_transport, make_event):
        recorder.script([make_event("error", message="Crawl timed out")])
        result = invoke(cli_config, "analyze", "https://example.com")
        assert result.exit_code == 1
        assert "Error: Crawl timed out" in result.output

    def test_credential_banner(self, cli_config, recorder, fake_transport, make_event):
        recorder.script([make_event("error", message="OPENAI_API_KEY is required")])
        result = invoke(cli_config, "analyze", "https://example.com")
        assert result.exit_code == 1
        assert "Configuration required" in result.output

    def test_json_output(self, cli_config, recorder, fake_transport, make_event):
        recorder.script([
            make_event("agent_complete", agent="meta", url="https://example.com", result={"score": 7}),
            make_event("complete"),
        ])
        result = invoke(cli_config, "analyze", "https://example.com", "--json")
        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["status"] == "completed"
        assert payload["results"]["https://example.com"]["meta"] == {"score": 7}

    def test_api_url_override(self, cli_config, recorder, fake_transport, make_event):
        recorder.script([make_event("complete")])
        result = CliRunner().invoke(
            seo_cli,
            ["--config", str(cli_config), "--api-url", "http://other.test/api/", "analyze", "https://example.com"],
        )
        assert result.exit_code == 0, result.output
        assert fake_transport == ["http://other.test/api"]

    def test_token_sent_when_signed_in(self, cli_config, signed_in, recorder, fake_transport, make_event):
        recorder.script([make_event("complete")])
        invoke(cli_config, "analyze", "https://example.com")
        assert recorder.streams[0].params["token"] == "tok-123"

    def test_unknown_agent(self, cli_config, fake_transport):
        result = invoke(cli_config, "analyze", "https://example.com", "-a", "guardian")
        assert result.exit_code == 2
        assert "Unknown agent" in result.output
        assert fake_transport == []


class TestAgents:
    def test_lists_catalogue(self, cli_config):
        result = invoke(cli_config, "agents")
        assert result.exit_code == 0
        assert "Crawl Agent" in result.output

    @patch("seoeco.api.client.ApiClient.agents_status", new_callable=AsyncMock)
    def test_server_status(self, mock_status, cli_config):
        mock_status.return_value = [{"id": "crawl", "status": "ready"}]
        result = invoke(cli_config, "agents", "--server")
        assert result.exit_code == 0
        assert json.loads(result.output) == [{"id": "crawl", "status": "ready"}]


class TestAuthCommands:
    @patch("seoeco.api.client.ApiClient.sign_in", new_callable=AsyncMock)
    def test_login(self, mock_sign_in, cli_config, tmp_path):
        mock_sign_in.return_value = AuthResponse(token="t", user=User(id="u1", email="a@b.test"))
        result = invoke(cli_config, "login", "--email", "a@b.test", "--password", "pw")
        assert result.exit_code == 0, result.output
        assert "Signed in as a@b.test" in result.output
        mock_sign_in.assert_awaited_once_with("a@b.test", "pw")
        assert TokenStore(tmp_path / "auth.json").token == "t"

    @patch("seoeco.api.client.ApiClient.sign_in", new_callable=AsyncMock)
    def test_login_prompts_for_password(self, mock_sign_in, cli_config):
        mock_sign_in.return_value = AuthResponse(token="t", user=User(id="u1", email="a@b.test"))
        result = invoke(cli_config, "login", "--email", "a@b.test", input="secret\n")
        assert result.exit_code == 0, result.output
        mock_sign_in.assert_awaited_once_with("a@b.test", "secret")

    @patch("seoeco.api.client.ApiClient.sign_in", new_callable=AsyncMock)
    def test_login_failure(self, mock_sign_in, cli_config, tmp_path):
        from seoeco.api.errors import ApiError

        mock_sign_in.side_effect = ApiError("Invalid credentials", 401)
        result = invoke(cli_config, "login", "--email", "a@b.test", "--password", "bad")
        assert result.exit_code == 1
        assert "Invalid credentials" in result.output
        assert not (tmp_path / "auth.json").exists()

    @patch("seoeco.api.client.ApiClient.sign_up", new_callable=AsyncMock)
    def test_signup(self, mock_sign_up, cli_config):
        mock_sign_up.return_value = AuthResponse(token="t", user=User(id="u2", email="new@b.test"))
        result = invoke(cli_config, "signup", "--email", "new@b.test", "--password", "pw")
        assert result.exit_code == 0, result.output
        assert "Account created" in result.output

    def test_logout(self, cli_config, signed_in):
        result = invoke(cli_config, "logout")
        assert result.exit_code == 0
        assert not signed_in.path.exists()

    def test_whoami_signed_out(self, cli_config):
        result = invoke(cli_config, "whoami")
        assert result.exit_code == 1
        assert "Not signed in" in result.output

    @patch("seoeco.api.client.ApiClient.me", new_callable=AsyncMock)
    def test_whoami(self, mock_me, cli_config, signed_in):
        mock_me.return_value = User(id="u1", email="a@b.test")
        result = invoke(cli_config, "whoami")
        assert result.exit_code == 0, result.output
        assert "a@b.test" in result.output


class TestTools:
    @patch("seoeco.api.client.ApiClient.keyword_research", new_callable=AsyncMock)
    def test_keywords(self, mock_research, cli_config):
        mock_research.return_value = {"summary": {"totalKeywords": 2}, "keywords": [], "recommendations": []}
        result = invoke(cli_config, "keywords", "seo tools, backlinks")
        assert result.exit_code == 0, result.output
        mock_research.assert_awaited_once_with(["seo tools", " backlinks"])

    def test_keywords_empty(self, cli_config):
        result = invoke(cli_config, "keywords", " , ")
        assert result.exit_code == 1
        assert "at least one keyword" in result.output

    @patch("seoeco.api.client.ApiClient.generate_blog", new_callable=AsyncMock)
    def test_blog_to_file(self, mock_blog, cli_config, tmp_path):
        mock_blog.return_value = {"content": {"title": "Local SEO", "body": [{"heading": "Maps", "content": "x"}]}}
        out = tmp_path / "post.md"
        result = invoke(cli_config, "blog", "Local SEO", "-k", "maps, reviews", "--tone", "casual", "--faq", "-o", str(out))
        assert result.exit_code == 0, result.output
        request = mock_blog.call_args.args[0]
        assert request.keywords == ["maps", "reviews"]
        assert request.tone == "casual"
        assert request.include_faq is True
        assert out.read_text(encoding="utf-8").startswith("# Local SEO")

    @patch("seoeco.api.client.ApiClient.generate_blog", new_callable=AsyncMock)
    def test_blog_into_directory(self, mock_blog, cli_config, tmp_path):
        mock_blog.return_value = {"content": {"title": "Local SEO"}}
        result = invoke(cli_config, "blog", "Local SEO", "-o", str(tmp_path))
        assert result.exit_code == 0, result.output
        assert (tmp_path / "local-seo.md").exists()

    @patch("seoeco.api.client.ApiClient.health", new_callable=AsyncMock)
    def test_health(self, mock_health, cli_config):
        mock_health.return_value = {"status": "ok"}
        result = invoke(cli_config, "health")
        assert result.exit_code == 0
        assert "http://backend.test" in result.output


class TestResults:
    def test_requires_sign_in(self, cli_config):
        result = invoke(cli_config, "results")
        assert result.exit_code == 1
        assert "Sign in required" in result.output

    @patch("seoeco.api.client.ApiClient.list_results", new_callable=AsyncMock)
    def test_lists_reports(self, mock_list, cli_config, signed_in):
        mock_list.return_value = ResultsResponse(results=[
            ResultItem(url="https://a.test", version=2, cloudinaryUrl="https://cdn.test/2.pdf"),
            ResultItem(url="https://a.test", version=1, cloudinaryUrl="https://cdn.test/1.pdf"),
        ])
        result = invoke(cli_config, "results")
        assert result.exit_code == 0, result.output
        assert "https://a.test" in result.output
        assert "1 analyzed URL(s)" in result.output

    def test_version_needs_url(self, cli_config, signed_in):
        result = invoke(cli_config, "results", "--version", "1")
        assert result.exit_code == 2

    @patch("seoeco.core.reports.load_version_report", new_callable=AsyncMock)
    def test_show_version_dashboard(self, mock_load, cli_config, signed_in, sample_results):
        mock_load.return_value = sample_results
        result = invoke(cli_config, "results", "--url", "https://example.com", "--version", "1")
        assert result.exit_code == 0, result.output
        assert "Overall score" in result.output

    @patch("seoeco.api.client.ApiClient.list_results", new_callable=AsyncMock)
    def test_expired_session(self, mock_list, cli_config, signed_in):
        from seoeco.api.errors import ApiError

        mock_list.side_effect = ApiError("Invalid token", 401)
        result = invoke(cli_config, "results")
        assert result.exit_code == 1
        assert "Session expired" in result.output


class TestConfigCommand:
    def test_shows_merged_config(self, cli_config):
        result = invoke(cli_config, "config")
        assert result.exit_code == 0
        assert "url: http://backend.test/api" in result.output
        assert "retry_attempts: 0" in result.output

    def test_demo_video_from_env(self, cli_config, monkeypatch):
        monkeypatch.setenv("SEOECO_DEMO_VIDEO_URL", "https://cdn.test/demo.mp4")
        result = invoke(cli_config, "config")
        assert "demo_video_url: https://cdn.test/demo.mp4" in result.output
        assert "No demo video" not in result.output
