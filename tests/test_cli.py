import os
from dataclasses import replace

from rocketsim import cli
from rocketsim.config import create_default_config
from rocketsim.landing import run_simulation_with_landing


def test_default_run_prints_summary(capsys):
    code = cli.main(["--no-plots", "-q"])
    assert code == 0
    assert "FLIGHT SUMMARY" in capsys.readouterr().out


def test_invalid_angle_is_rejected():
    assert cli.main(["--angle", "45", "--no-plots", "-q"]) == 2


def test_plots_written(tmp_path, capsys):
    code = cli.main(["--angle", "5", "--wind", "2", "-q", "-o", str(tmp_path)])
    assert code == 0
    assert os.path.exists(tmp_path / "01_trajectory.png")
    assert "03_attitude.png" in capsys.readouterr().out


def test_parse_args_defaults():
    args = cli.parse_args([])
    assert args.motor == 'A8-3'
    assert args.angle == 0.0
    assert not args.enhanced_attitude


def test_run_uses_default_config(monkeypatch):
    seen = {}

    def fake_run(design, environment, config):
        seen['config'] = config
        return run_simulation_with_landing(design, environment,
                                           replace(config, max_time=0.5))

    monkeypatch.setattr(cli, "run_simulation_with_landing", fake_run)
    assert cli.main(["--no-plots", "-q", "--enhanced-attitude"]) == 0
    assert seen['config'] == replace(create_default_config(), enhanced_attitude_control=True)
