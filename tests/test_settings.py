import logging

import pytest
from pydantic import ValidationError

from nicpk.types import AbsorptionConfig, DoseEvent
from nicpk.settings import CalculatorSettings, load_settings
from nicpk.simulate import run_history, run_level, run_projection
from nicpk.log import configure_logging

T0 = 1_704_067_200.0


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for key in ("NICPK_FULL_RELEASE_MINUTES", "NICPK_NICOTINE_RANGE_LOW", "NICPK_NICOTINE_RANGE_HIGH"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)  # no stray .env


def test_defaults():
    s = CalculatorSettings()
    assert s.absorption_config() == AbsorptionConfig(full_release_s=1800.0)
    rng = s.alert_range()
    assert rng.effective_low == pytest.approx(0.8)
    assert rng.effective_high == pytest.approx(3.0)
    assert rng.is_low(0.8) and not rng.is_low(0.81)
    assert rng.is_high(3.01) and not rng.is_high(3.0)


def test_env_selects_duration(monkeypatch):
    monkeypatch.setenv("NICPK_FULL_RELEASE_MINUTES", "45")
    assert CalculatorSettings().absorption_config().full_release_s == 2700.0


def test_dotenv_file(tmp_path):
    (tmp_path / ".env").write_text("NICPK_FULL_RELEASE_MINUTES=60\n")
    assert CalculatorSettings().full_release_minutes == 60


def test_off_menu_duration_rejected():
    with pytest.raises(ValidationError):
        CalculatorSettings(full_release_minutes=40)


def test_inverted_range_rejected():
    with pytest.raises(ValidationError):
        CalculatorSettings(nicotine_range_low=4.0, nicotine_range_high=2.0)


def test_load_settings_ignores_none():
    s = load_settings(full_release_minutes=None, nicotine_range_high=5.0)
    assert s.full_release_minutes == 30
    assert s.nicotine_range_high == 5.0


def test_from_minutes_falls_back_to_default():
    assert AbsorptionConfig.from_minutes(60).full_release_s == 3600.0
    assert AbsorptionConfig.from_minutes(40).full_release_s == 1800.0


def test_run_level_uses_configured_duration():
    """6 mg, 30 min in, 60 min ramp: half way -> 0.9 mg."""
    events = [DoseEvent(id="a", dose_mg=6.0, inserted_at=T0 - 1800)]
    assert run_level(events, load_settings(full_release_minutes=60), T0) == pytest.approx(0.9)
    assert run_level(events, load_settings(), T0) == pytest.approx(1.8)


def test_run_history_and_projection_follow_sampling_settings():
    events = [DoseEvent(id="a", dose_mg=6.0, inserted_at=T0 - 1800, removed_at=T0 - 600)]
    s = load_settings(history_hours=2, history_step_minutes=15,
                      projection_hours=1, projection_step_minutes=10)
    t, C = run_history(events, s, T0)
    assert len(t) == 9
    proj = run_projection(events, s, T0)
    assert proj.times.size == 7
    assert proj.current_level == pytest.approx(C[-1], abs=5e-4)


def test_configure_logging_idempotent():
    logger = configure_logging("debug")
    configure_logging("INFO")
    assert logger is logging.getLogger("nicpk")
    assert logger.level == logging.INFO
    assert len([h for h in logger.handlers if h.get_name() == "nicpk-stream"]) == 1


def test_settings_apply_log_level(monkeypatch):
    monkeypatch.setenv("NICPK_LOG_LEVEL", "DEBUG")
    logger = CalculatorSettings().apply_logging()
    assert logger.level == logging.DEBUG
    logger.setLevel(logging.WARNING)
