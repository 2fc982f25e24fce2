from pathlib import Path

import pytest

from sunheading.config import ENV_MAP, format_duration, load_config, parse_duration
from sunheading.errors import ConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for env in ENV_MAP:
        monkeypatch.delenv(env, raising=False)


def _load(tmp_path: Path, repo: str = "", user: str = ""):
    repo_p = tmp_path / "repo.toml"
    user_p = tmp_path / "user.toml"
    if repo:
        repo_p.write_text(repo, encoding="utf-8")
    if user:
        user_p.write_text(user, encoding="utf-8")
    return load_config(repo_root=tmp_path, repo_config_path=repo_p, user_config_path=user_p)


@pytest.mark.parametrize(
    "text, seconds",
    [
        ("10s", 10.0),
        ("1m30s", 90.0),
        ("250ms", 0.25),
        ("1h", 3600.0),
        ("2.5s", 2.5),
        ("15", 15.0),
        (12, 12.0),
        (" 1m ", 60.0),
    ],
)
def test_parse_duration(text, seconds):
    assert parse_duration(text) == pytest.approx(seconds)


@pytest.mark.parametrize("text", ["", "ten seconds", "10x", "s10", "10s junk", True])
def test_parse_duration_rejects_garbage(text):
    with pytest.raises(ConfigError):
        parse_duration(text)


@pytest.mark.parametrize("seconds, text", [(10.0, "10s"), (90.0, "1m30s"), (0.5, "0.5s"), (3600.0, "1h0m0s")])
def test_format_duration(seconds, text):
    assert format_duration(seconds) == text


def test_defaults_without_files(tmp_path):
    cfg = _load(tmp_path)
    assert cfg.analysis.pause_detect_s == 10.0
    assert cfg.analysis.deep_sun_elevation == 15.0
    assert cfg.analysis.blinding_half_angle == 30.0
    assert cfg.analysis.hemisphere_correction is True
    assert cfg.analysis.ephemeris == "meeus"
    assert cfg.output.out_dir is None
    assert cfg.output.write_csv and cfg.output.write_gpx and not cfg.output.plot
    assert set(cfg.source.values()) == {"default"}


def test_user_overrides_repo(tmp_path):
    cfg = _load(
        tmp_path,
        repo='[analysis]\npause_detect = "20s"\nephemeris = "astral"\n',
        user='[analysis]\npause_detect = "30s"\n[output]\nplot = "yes"\n',
    )
    assert cfg.analysis.pause_detect_s == 30.0
    assert cfg.analysis.ephemeris == "astral"
    assert cfg.output.plot is True
    assert cfg.source["analysis.pause_detect"].startswith("user:")
    assert cfg.source["analysis.ephemeris"].startswith("repo:")


def test_env_overrides_files(tmp_path, monkeypatch):
    monkeypatch.setenv("SUNHEADING_PAUSE_DETECT", "1m")
    monkeypatch.setenv("SUNHEADING_HEMISPHERE_CORRECTION", "off")
    monkeypatch.setenv("SUNHEADING_OUT_DIR", str(tmp_path / "out"))
    cfg = _load(tmp_path, user='[analysis]\npause_detect = 5\n')
    assert cfg.analysis.pause_detect_s == 60.0
    assert cfg.analysis.hemisphere_correction is False
    assert cfg.output.out_dir == tmp_path / "out"
    assert cfg.source["analysis.pause_detect"] == "env:SUNHEADING_PAUSE_DETECT"


def test_invalid_toml_fails_loudly(tmp_path):
    with pytest.raises(ConfigError):
        _load(tmp_path, user="[analysis\npause_detect = ")


@pytest.mark.parametrize(
    "body",
    [
        '[analysis]\ndeep_sun_elevation = "low"\n',
        "[analysis]\nblinding_half_angle = 200\n",
        '[analysis]\npause_detect = "0s"\n',
    ],
)
def test_invalid_values(tmp_path, body):
    with pytest.raises(ConfigError):
        _load(tmp_path, repo=body)
