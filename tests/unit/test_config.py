import os

import pytest

from utils.config import Settings, load_environments


@pytest.fixture(autouse=True)
def isolated_environ(monkeypatch):
    # .env loading writes into os.environ; keep it to this test.
    monkeypatch.setattr(os, "environ", dict(os.environ))


def test_env_file_does_not_override_real_environment(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "# local overrides\nLLM_PROVIDER=gemini\nQUERY_TIMEOUT_MS='2500'\nSEED_SAMPLE_DATA=yes\n",
        encoding="utf-8",
    )
    os.environ["LLM_PROVIDER"] = "ollama"
    os.environ.pop("QUERY_TIMEOUT_MS", None)
    os.environ.pop("SEED_SAMPLE_DATA", None)

    settings = Settings.from_env(str(env_file))
    assert settings.llm_provider == "ollama"
    assert settings.query_timeout_ms == 2500
    assert settings.seed_sample_data is True


def test_defaults_without_env_file(tmp_path):
    for name in ("DB_ENGINE", "LLM_PROVIDER", "OPENAI_API_KEY", "LLM_MAX_RETRIES"):
        os.environ.pop(name, None)
    settings = Settings.from_env(str(tmp_path / "missing.env"))
    assert settings.db_engine == "sqlite"
    assert settings.llm_provider == "openai"
    assert settings.openai_api_key is None
    assert settings.llm_max_retries == 1


def test_load_environments_skips_comments_and_malformed_lines(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("\n# comment\nNOT_A_PAIR\nQM_TEST_KEY=\"quoted\"\n", encoding="utf-8")
    os.environ.pop("QM_TEST_KEY", None)
    load_environments(str(env_file))
    assert os.environ["QM_TEST_KEY"] == "quoted"
    assert "NOT_A_PAIR" not in os.environ
