import os

from packages import env


def test_load_env_reads_extra_paths(tmp_path, monkeypatch):
    dotenv = tmp_path / "portfolio.env"
    dotenv.write_text("PORTFOLIO_API_PORT=9393\n", encoding="utf-8")
    monkeypatch.delenv("PORTFOLIO_API_PORT", raising=False)

    assert env.load_env(extra_paths=[dotenv]) is True
    assert os.environ["PORTFOLIO_API_PORT"] == "9393"
    monkeypatch.delenv("PORTFOLIO_API_PORT")


def test_env_file_variable_is_a_candidate(tmp_path, monkeypatch):
    dotenv = tmp_path / "custom.env"
    dotenv.write_text("X=1\n", encoding="utf-8")
    monkeypatch.setenv(env.ENV_FILE_VARIABLE, str(dotenv))

    assert dotenv.resolve() in env.candidate_env_files()
    assert tmp_path / "missing.env" not in env.candidate_env_files([tmp_path / "missing.env"])


def test_repeated_load_env_returns_first_result(monkeypatch):
    calls = []
    monkeypatch.setattr(env, "_LOADED", None)
    monkeypatch.setattr(env, "candidate_env_files", lambda extra=None: calls.append(extra) or [])

    assert env.load_env() is False
    assert env.load_env() is False
    assert calls == [None]
