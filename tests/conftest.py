"""
Shared fixtures: cipher keys and an in-memory asyncpg-compatible pool.

FakePool understands exactly the statements issued by CredentialStore and
rotate_encryption_key, and keeps rows as plain dicts.
"""
import itertools
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

import pytest

from bot_credentials.vault import credential_store as cs
from bot_credentials.vault import key_rotation as kr
from bot_credentials.vault.crypto import CredentialCipher


KEY = b"0123456789abcdef0123456789abcdef"
OTHER_KEY = b"fedcba9876543210fedcba9876543210"

_TWITTER_INSERT_COLUMNS = (
    "id", "owner_user_id", "twitter_api_key", "twitter_api_secret",
    "twitter_access_token", "twitter_access_secret",
)
_DISCORD_INSERT_COLUMNS = ("id", "owner_user_id", "bot_token", "channel_id")


class FakeTransaction:
    def __init__(self, pool):
        self.pool = pool

    async def start(self):
        self.pool.transactions += 1

    async def commit(self):
        self.pool.commits += 1

    async def rollback(self):
        self.pool.rollbacks += 1


class FakeConnection:
    def __init__(self, pool):
        self.pool = pool

    def transaction(self):
        return FakeTransaction(self.pool)

    async def fetchrow(self, statement, *args):
        return self.pool.run(statement, args)

    async def fetch(self, statement, *args):
        return self.pool.run(statement, args)

    async def execute(self, statement, *args):
        return self.pool.run(statement, args)


class FakePool:
    """In-memory stand-in for an asyncpg pool."""

    def __init__(self):
        self.tables = {"twitter_accounts": [], "discord_bots": []}
        self.transactions = 0
        self.commits = 0
        self.rollbacks = 0
        self._clock = itertools.count()
        self._epoch = datetime(2024, 1, 1, tzinfo=timezone.utc)

    @asynccontextmanager
    async def acquire(self):
        yield FakeConnection(self)

    def _insert(self, table, columns, args):
        row = dict(zip(columns, args))
        row["created_at"] = self._epoch + timedelta(seconds=next(self._clock))
        self.tables[table].append(row)
        return dict(row)

    def _by_owner(self, table, owner):
        return [dict(r) for r in self.tables[table] if r["owner_user_id"] == owner]

    def _by_id(self, table, record_id):
        for row in self.tables[table]:
            if row["id"] == record_id:
                return dict(row)
        return None

    def _delete(self, table, record_id):
        before = len(self.tables[table])
        self.tables[table] = [r for r in self.tables[table] if r["id"] != record_id]
        return f"DELETE {before - len(self.tables[table])}"

    def _batch(self, table, limit, offset):
        rows = sorted(self.tables[table], key=lambda r: str(r["id"]))
        return [dict(r) for r in rows[offset:offset + limit]]

    def _update(self, table, args):
        *values, record_id = args
        for row in self.tables[table]:
            if row["id"] == record_id:
                row.update(zip(cs.SECRET_COLUMNS[table], values))
                return "UPDATE 1"
        return "UPDATE 0"

    def run(self, statement, args):
        if statement == cs._INSERT_TWITTER:
            return self._insert("twitter_accounts", _TWITTER_INSERT_COLUMNS, args)
        if statement == cs._INSERT_DISCORD:
            return self._insert("discord_bots", _DISCORD_INSERT_COLUMNS, args)
        if statement == cs._SELECT_TWITTER_BY_OWNER:
            return self._by_owner("twitter_accounts", *args)
        if statement == cs._SELECT_DISCORD_BY_OWNER:
            return self._by_owner("discord_bots", *args)
        if statement == cs._SELECT_TWITTER_BY_ID:
            return self._by_id("twitter_accounts", *args)
        if statement == cs._SELECT_DISCORD_BY_ID:
            return self._by_id("discord_bots", *args)
        if statement == cs._DELETE_TWITTER:
            return self._delete("twitter_accounts", *args)
        if statement == cs._DELETE_DISCORD:
            return self._delete("discord_bots", *args)
        for table in cs.SECRET_COLUMNS:
            if statement == kr._SELECT_BATCH[table]:
                return self._batch(table, *args)
            if statement == kr._UPDATE_ROW[table]:
                return self._update(table, args)
        raise AssertionError(f"Unexpected statement: {statement!r}")

    def all_values(self):
        """Every stored value, for plaintext leak checks."""
        return [
            value
            for rows in self.tables.values()
            for row in rows
            for value in row.values()
        ]


@pytest.fixture
def cipher():
    return CredentialCipher(KEY)


@pytest.fixture
def other_cipher():
    return CredentialCipher(OTHER_KEY)


@pytest.fixture
def pool():
    return FakePool()


@pytest.fixture
def store(pool, cipher):
    return cs.CredentialStore(pool, cipher)


@pytest.fixture
def key():
    return KEY
