"""Request-scoped access to the forest tables."""

import logging
from dataclasses import dataclass
from datetime import datetime

import mysql.connector
from mysql.connector import Error
from mysql.connector.constants import ClientFlag

from forest.errors import ConflictError, NotFoundError, UpstreamStoreError
from forest.settlement import ALLOW_NEGATIVE, TREE_COST, available_coins, settle_purchase
from forest.trees import Tree, TreeStatus, as_datetime

logger = logging.getLogger(__name__)

USER_STATE_ID = 1

CREATE_FOREST_TABLE = '''
    CREATE TABLE IF NOT EXISTS forest (
        id INTEGER PRIMARY KEY AUTO_INCREMENT,
        treeType VARCHAR(255) NOT NULL,
        status VARCHAR(16) NOT NULL,
        purchaseDate DATETIME(6) NOT NULL,
        matureDate DATETIME(6) NOT NULL
    )
'''


@dataclass
class UserState:
    coins_at_last_relapse: int
    last_relapse: datetime
    # Column value as stored, compared verbatim when settling.
    last_relapse_raw: object = None

    def balance(self, now):
        return available_coins(self.coins_at_last_relapse, self.last_relapse, now)


def mysql_connector(db_config, connect=mysql.connector.connect):
    # Report matched rows for UPDATE, so a compare-and-set that writes the
    # value already stored still counts as a match.
    options = dict(db_config, client_flags=[ClientFlag.FOUND_ROWS])

    def _connect():
        return connect(**options)
    return _connect


def open_store(connect):
    try:
        conn = connect()
    except Error as e:
        logger.error('Forest DB connection failed: %s', e)
        raise UpstreamStoreError() from e
    return ForestStore(conn)


class ForestStore:
    """Wraps one DB-API connection for the lifetime of a request."""

    def __init__(self, conn):
        self.conn = conn

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def close(self):
        try:
            self.conn.close()
        except Error as e:
            logger.warning('Closing forest DB connection failed: %s', e)

    def _rollback(self):
        try:
            self.conn.rollback()
        except Error as e:
            logger.warning('Rollback failed: %s', e)

    def _run(self, query, params=(), fetch=None, commit=False):
        try:
            with self.conn.cursor(dictionary=True) as cursor:
                cursor.execute(query, params)
                if fetch == 'one':
                    result = cursor.fetchone()
                elif fetch == 'all':
                    result = cursor.fetchall()
                else:
                    result = cursor.rowcount
            if commit:
                self.conn.commit()
            return result
        except Error as e:
            logger.error('Forest DB query failed: %s', e)
            self._rollback()
            raise UpstreamStoreError() from e

    def init_schema(self):
        self._run(CREATE_FOREST_TABLE, commit=True)

    def mature_trees(self, now):
        """Flip every due ``growing`` tree to ``matured``. Runs before any tree access."""
        matured = self._run(
            'UPDATE forest SET status = %s WHERE status = %s AND matureDate <= %s',
            (TreeStatus.MATURED.value, TreeStatus.GROWING.value, now),
            commit=True,
        )
        if matured and matured > 0:
            logger.info('Matured %d tree(s)', matured)
        return matured

    def list_trees(self):
        rows = self._run('SELECT * FROM forest ORDER BY purchaseDate DESC, id DESC', fetch='all')
        return [Tree.from_row(row) for row in rows]

    def get_user_state(self):
        row = self._run(
            'SELECT coinsAtLastRelapse, lastRelapse FROM user_state WHERE id = %s',
            (USER_STATE_ID,),
            fetch='one',
        )
        if not row:
            return None
        return UserState(
            coins_at_last_relapse=int(row['coinsAtLastRelapse']),
            last_relapse=as_datetime(row['lastRelapse']),
            last_relapse_raw=row['lastRelapse'],
        )

    def require_user_state(self):
        state = self.get_user_state()
        if state is None:
            raise NotFoundError()
        return state

    def purchase_tree(self, tree_type, growth_hours, now, cost=TREE_COST, baseline_policy=ALLOW_NEGATIVE):
        state = self.require_user_state()
        settlement = settle_purchase(state.coins_at_last_relapse, state.last_relapse, now, cost, baseline_policy)
        tree = Tree.planted(tree_type, growth_hours, now)

        # Baseline update and insert commit together; the baseline only moves
        # if neither it nor the relapse time changed since they were read.
        raw_relapse = state.last_relapse_raw if state.last_relapse_raw is not None else state.last_relapse
        try:
            with self.conn.cursor(dictionary=True) as cursor:
                cursor.execute(
                    'UPDATE user_state SET coinsAtLastRelapse = %s '
                    'WHERE id = %s AND coinsAtLastRelapse = %s AND lastRelapse = %s',
                    (settlement.new_baseline, USER_STATE_ID, state.coins_at_last_relapse, raw_relapse),
                )
                if cursor.rowcount != 1:
                    raise ConflictError()
                cursor.execute(
                    'INSERT INTO forest (treeType, status, purchaseDate, matureDate) VALUES (%s, %s, %s, %s)',
                    (tree.tree_type, tree.status.value, tree.purchase_date, tree.mature_date),
                )
            self.conn.commit()
        except ConflictError:
            logger.warning('Concurrent balance change detected, purchase of %r rolled back', tree_type)
            self._rollback()
            raise
        except Error as e:
            logger.error('Forest purchase failed: %s', e)
            self._rollback()
            raise UpstreamStoreError() from e

        logger.info(
            'Planted %r for %d coins; balance %d -> %d',
            tree_type, settlement.cost, settlement.before.total, settlement.final_balance,
        )
        return settlement
