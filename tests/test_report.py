import importlib

import pytest


@pytest.fixture
def report(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    import main
    return importlib.reload(main)


def test_grid_covers_all_experiments(report):
    grid = report.simulate()
    assert set(grid["experiment"]) == {"1", "2", "3"}
    assert len(grid) == 3 * 3 * 4 * len(report.COSTS)


def test_cost_benefit_table_and_db(report, tmp_path):
    grid = report.simulate()
    cb = report.cost_benefit_table(grid)
    assert len(cb) == 3 * len(report.COSTS) * 3
    # uptake falls with cost, so do participants
    exp1_low = cb[(cb.experiment == "1") & (cb.qaly == "low")]
    assert exp1_low["participants"].is_monotonic_decreasing

    wtp = report.wtp_frame("1").assign(experiment="1")
    report.write_db(grid, wtp, cb, path=str(tmp_path / "report.db"))
    assert (tmp_path / "report.db").exists()
