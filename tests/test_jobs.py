from datetime import timedelta

from forest.jobs import SWEEP_JOB_ID, sweep_forest
from tests.conftest import NOW


def test_scheduler_off_by_default(make_app) -> None:
    app = make_app()
    assert 'scheduler' not in app.extensions['forest']


def test_scheduler_registers_sweep_job(make_app) -> None:
    app = make_app(FOREST_SWEEP_INTERVAL_MINUTES=5)
    scheduler = app.extensions['forest']['scheduler']
    try:
        assert scheduler.get_job(SWEEP_JOB_ID) is not None
    finally:
        scheduler.shutdown(wait=False)


def test_background_sweep_matures_trees(make_app, db, clock) -> None:
    app = make_app()
    db.set_user_state(1000, NOW)
    app.test_client().post('/api/forest', json={'treeId': 'oak', 'growthHours': 1})

    clock.advance(hours=1)

    assert sweep_forest(app) == 1
    assert db.trees()[0]['status'] == 'matured'
