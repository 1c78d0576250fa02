import re
import sqlite3
from datetime import datetime, timedelta

import pytest
from mysql.connector.constants import ClientFlag

from forest import create_app
from forest.store import mysql_connector

NOW = datetime(2026, 10, 19, 12, 0, 0)

UPDATE_RE = re.compile(r'UPDATE (\w+) SET (.+?) WHERE (.+)', re.S)


class SqliteCursor:
    """Minimal stand-in for a mysql.connector dictionary cursor.

    Like MySQL, UPDATE reports changed rows unless the connection was opened
    with FOUND_ROWS, in which case it reports matched rows.
    """

    def __init__(self, cursor, dictionary, found_rows):
        self._cursor = cursor
        self._dictionary = dictionary
        self._found_rows = found_rows
        self._rowcount = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self._cursor.close()

    def execute(self, query, params=()):
        query = query.replace('AUTO_INCREMENT', 'AUTOINCREMENT').replace('%s', '?')
        params = tuple(
            p.isoformat(sep=' ', timespec='microseconds') if isinstance(p, datetime) else p
            for p in params
        )
        self._rowcount = None
        match = UPDATE_RE.match(query.strip())
        if match and not self._found_rows:
            self._rowcount = self._changed_rows(match, params)
        else:
            self._cursor.execute(query, params)

    def _changed_rows(self, match, params):
        table, assignments, where = match.groups()
        where_params = params[assignments.count('?'):]
        self._cursor.execute(f'SELECT rowid, * FROM {table} WHERE {where} ORDER BY rowid', where_params)
        before = self._cursor.fetchall()
        self._cursor.execute(f'UPDATE {table} SET {assignments} WHERE {where}', params)
        if not before:
            return 0
        marks = ', '.join('?' * len(before))
        self._cursor.execute(
            f'SELECT rowid, * FROM {table} WHERE rowid IN ({marks}) ORDER BY rowid',
            [row[0] for row in before],
        )
        return sum(1 for old, new in zip(before, self._cursor.fetchall()) if old != new)

    def _row(self, row):
        if row is None or not self._dictionary:
            return row
        return {col[0]: value for col, value in zip(self._cursor.description, row)}

    def fetchone(self):
        return self._row(self._cursor.fetchone())

    def fetchall(self):
        return [self._row(row) for row in self._cursor.fetchall()]

    @property
    def rowcount(self):
        if self._rowcount is not None:
            return self._rowcount
        return self._cursor.rowcount


class SqliteConnection:
    def __init__(self, path, log, found_rows):
        self._conn = sqlite3.connect(path)
        self._log = log
        self._found_rows = found_rows
        log.append('open')

    def cursor(self, dictionary=False):
        return SqliteCursor(self._conn.cursor(), dictionary, self._found_rows)

    def commit(self):
        self._conn.commit()

    def rollback(self):
        self._conn.rollback()

    def close(self):
        self._log.append('close')
        self._conn.close()


class Database:
    def __init__(self, path):
        self.path = str(path)
        self.log = []

    def open(self, **options):
        self.options = options
        found_rows = ClientFlag.FOUND_ROWS in options.get('client_flags', [])
        return SqliteConnection(self.path, self.log, found_rows)

    def connect(self):
        return self.open(client_flags=[ClientFlag.FOUND_ROWS])

    def execute(self, query, params=()):
        conn = self.connect()
        with conn.cursor(dictionary=True) as cursor:
            cursor.execute(query, params)
            rows = cursor.fetchall() if query.lstrip().upper().startswith('SELECT') else None
        conn.commit()
        conn.close()
        return rows

    def set_user_state(self, coins, last_relapse):
        self.execute(
            'CREATE TABLE IF NOT EXISTS user_state '
            '(id INTEGER PRIMARY KEY, coinsAtLastRelapse INTEGER NOT NULL, lastRelapse TEXT NOT NULL)'
        )
        if isinstance(last_relapse, datetime):
            last_relapse = last_relapse.isoformat() + 'Z'
        self.execute('DELETE FROM user_state')
        self.execute(
            'INSERT INTO user_state (id, coinsAtLastRelapse, lastRelapse) VALUES (1, %s, %s)',
            (coins, last_relapse),
        )

    def baseline(self):
        return self.execute('SELECT coinsAtLastRelapse FROM user_state WHERE id = 1')[0]['coinsAtLastRelapse']

    def trees(self):
        return self.execute('SELECT * FROM forest ORDER BY id')


class Clock:
    def __init__(self, now=NOW):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def db(tmp_path):
    return Database(tmp_path / 'forest.db')


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def make_app(db, clock):
    def _make(**config):
        settings = {'TESTING': True, 'SECRET_KEY': 'test', 'MAIN_APP_URL': 'https://habits.example.com'}
        settings.update(config)
        return create_app(settings, connect=mysql_connector({'database': db.path}, connect=db.open), clock=clock)
    return _make


@pytest.fixture
def client(make_app):
    return make_app().test_client()
