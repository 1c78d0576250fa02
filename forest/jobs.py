"""Optional background maturation sweep."""

import logging

from flask_apscheduler import APScheduler

from forest.errors import ForestError
from forest.store import open_store

logger = logging.getLogger(__name__)

SWEEP_JOB_ID = 'mature_forest'


def sweep_forest(app):
    with app.app_context():
        forest = app.extensions['forest']
        try:
            with open_store(forest['connect']) as store:
                store.init_schema()
                return store.mature_trees(forest['clock']())
        except ForestError as e:
            logger.error('Background forest sweep failed: %s', e)
            return 0


def init_scheduler(app):
    minutes = app.config['FOREST_SWEEP_INTERVAL_MINUTES']
    if minutes <= 0:
        return None

    scheduler = APScheduler()
    scheduler.init_app(app)
    scheduler.start()

    if scheduler.get_job(SWEEP_JOB_ID):
        scheduler.remove_job(SWEEP_JOB_ID)

    scheduler.add_job(
        id=SWEEP_JOB_ID,
        func=sweep_forest,
        args=[app],
        trigger='interval',
        minutes=minutes,
    )
    app.extensions['forest']['scheduler'] = scheduler
    logger.info('Background forest sweep every %d minute(s)', minutes)
    return scheduler
