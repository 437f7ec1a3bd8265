import pytest

from trainer.api.config import TrainerConfig
from trainer.api.errors import ConfigError
from trainer.api.frame_data import Point2D
from trainer.score.engine import ScoreEngine, SessionStatus, Target

CENTER = Point2D(450, 600)


@pytest.fixture
def target():
    return Target(CENTER, (120, 220, 320, 420), (10, 9, 8, 7, 6))


@pytest.mark.parametrize("dist, expected", [
    (0, 10), (50, 10), (120, 10), (150, 9), (250, 8), (320, 8), (400, 7), (420, 7), (450, 6), (5000, 6),
])
def test_ring_scores(target, dist, expected):
    assert target.score(Point2D(CENTER.x, CENTER.y + dist)) == expected


def test_distance_is_euclidean(target):
    # 3-4-5 triangle scaled to 150
    assert target.score(Point2D(CENTER.x + 90, CENTER.y + 120)) == 9


def test_last_ring_value_is_catch_all_when_no_miss_value():
    t = Target(CENTER, (100, 200), (5, 3))
    assert t.score(Point2D(450, 900)) == 3


def test_target_validation():
    with pytest.raises(ConfigError):
        Target(CENTER, (200, 100), (1, 2))
    with pytest.raises(ConfigError):
        Target(CENTER, (100, 200), (1, 2, 3, 4))
    with pytest.raises(ConfigError):
        Target(CENTER, (), (1,))


def test_target_from_config_uses_rectangle_center():
    t = Target.from_config(TrainerConfig())
    assert t.center == Point2D(450.0, 600.0)
    assert t.rings == (120.0, 220.0, 320.0, 420.0)


def test_session_accumulates_and_finishes_once(target):
    eng = ScoreEngine(target)
    eng.start(3)
    assert eng.running

    hit, summary = eng.record(Point2D(500, 600), now=1.0)
    assert hit.score == 10 and summary is None
    hit, summary = eng.record(Point2D(450, 750), now=2.0)
    assert hit.score == 9 and summary is None
    assert eng.stats.avg_score == pytest.approx(9.5)

    hit, summary = eng.record(Point2D(450, 1100), now=3.0)
    assert hit.score == 6
    assert summary.total == 25
    assert summary.shots == 3
    assert summary.avg == pytest.approx(8.333, abs=1e-3)
    assert eng.status == SessionStatus.Finished

    assert eng.record(Point2D(450, 600), now=4.0) == (None, None)
    assert eng.stats.shots_fired == 3


def test_nothing_scores_before_start(target):
    eng = ScoreEngine(target)
    assert eng.record(CENTER, now=0.0) == (None, None)
    assert eng.stats.avg_score == 0.0


def test_stop_resets_and_start_begins_fresh(target):
    eng = ScoreEngine(target, shots_goal=5)
    eng.start()
    eng.record(CENTER, 0.0)
    eng.stop()
    assert eng.status == SessionStatus.Stopped
    assert eng.stats.shots_fired == 0 and eng.stats.last_score is None

    eng.start(2)
    assert eng.shots_goal == 2 and eng.stats.total_score == 0
    with pytest.raises(ConfigError):
        eng.start(0)


def test_snapshot_matches_remote_shape(target):
    eng = ScoreEngine(target, shots_goal=10)
    assert eng.snapshot() == {
        "running": False, "status": "idle", "shots": 0, "shots_goal": 10,
        "last_score": None, "total_score": 0, "avg_score": 0.0,
    }
    eng.start()
    eng.record(Point2D(500, 600), 0.0)
    eng.record(Point2D(450, 750), 0.5)
    eng.record(Point2D(450, 850), 1.0)
    snap = eng.snapshot()
    assert snap["running"] is True and snap["status"] == "running"
    assert snap["shots"] == 3 and snap["last_score"] == 8
    assert snap["total_score"] == 27 and snap["avg_score"] == 9.0
