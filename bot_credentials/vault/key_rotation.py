"""
Key Rotation — Batch re-encryption of stored credentials.

Re-encrypts every secret column of ``twitter_accounts`` and ``discord_bots``
from one cipher to another in configurable batches. Each batch runs in its
own transaction for resumability. The operation is idempotent: rows whose
secrets already decrypt under the target cipher in the current format are
skipped.

Passing the same cipher as source and target migrates legacy CBC tokens to
the authenticated v1 format without changing the key.

Security Note:
    Plaintext exists in memory only during re-encryption of each row.
    Never log plaintext or ciphertext values.
"""
import logging
from typing import Any, Optional

from ..exceptions import DecryptionError
from .crypto import CredentialCipher
from .credential_store import SECRET_COLUMNS

logger = logging.getLogger("bot_credentials.vault")


def _select_batch(table: str, columns: tuple) -> str:
    return (
        f"SELECT id, {', '.join(columns)}\n"
        f"FROM {table}\n"
        "ORDER BY id\n"
        "LIMIT $1\n"
        "OFFSET $2\n"
    )


def _update_row(table: str, columns: tuple) -> str:
    assignments = ", ".join(
        f"{column} = ${position}"
        for position, column in enumerate(columns, start=1)
    )
    return (
        f"UPDATE {table}\n"
        f"SET {assignments}\n"
        f"WHERE id = ${len(columns) + 1}\n"
    )


# SQL statements, one pair per table
_SELECT_BATCH = {
    table: _select_batch(table, columns)
    for table, columns in SECRET_COLUMNS.items()
}
_UPDATE_ROW = {
    table: _update_row(table, columns)
    for table, columns in SECRET_COLUMNS.items()
}


def _is_current(token: str, cipher: CredentialCipher) -> bool:
    """True when ``token`` is a v1 token that ``cipher`` can decrypt."""
    if cipher.needs_upgrade(token):
        return False
    try:
        cipher.decrypt(token)
    except DecryptionError:
        return False
    return True


def rotate_row(
    row: Any,
    columns: tuple,
    old_cipher: CredentialCipher,
    new_cipher: CredentialCipher,
) -> Optional[list[str]]:
    """Re-encrypt the secret columns of a single row.

    Returns:
        New token values in column order, or None if every column is
        already current under ``new_cipher``.

    Raises:
        TokenFormatError: If a stored token is malformed.
        DecryptionError: If a token decrypts under neither cipher.
    """
    tokens = [row[column] for column in columns]
    if all(_is_current(token, new_cipher) for token in tokens):
        return None
    rotated = []
    for token in tokens:
        if _is_current(token, new_cipher):
            rotated.append(token)
        else:
            rotated.append(new_cipher.reencrypt(token, source=old_cipher))
    return rotated


async def _rotate_table(
    db_pool: Any,
    table: str,
    old_cipher: CredentialCipher,
    new_cipher: CredentialCipher,
    batch_size: int,
    stats: dict,
) -> None:
    columns = SECRET_COLUMNS[table]
    offset = 0

    while True:
        async with db_pool.acquire() as conn:
            rows = await conn.fetch(_SELECT_BATCH[table], batch_size, offset)

        if not rows:
            break

        batch_num = (offset // batch_size) + 1
        logger.info(
            "Processing %s batch %d (%d rows)", table, batch_num, len(rows),
        )

        async with db_pool.acquire() as conn:
            tx = conn.transaction()
            await tx.start()
            try:
                for row in rows:
                    stats["total"] += 1
                    row_id = row["id"]
                    try:
                        rotated = rotate_row(row, columns, old_cipher, new_cipher)
                        if rotated is None:
                            stats["skipped"] += 1
                            continue
                        await conn.execute(
                            _UPDATE_ROW[table], *rotated, row_id,
                        )
                        stats["rotated"] += 1
                    except ValueError as err:
                        logger.error(
                            "Error rotating %s id=%s: %s", table, row_id, err,
                        )
                        stats["errors"] += 1

                await tx.commit()
            except Exception:
                await tx.rollback()
                raise

        offset += len(rows)


async def rotate_encryption_key(
    db_pool: Any,
    old_cipher: CredentialCipher,
    new_cipher: CredentialCipher,
    batch_size: int = 100,
) -> dict:
    """Re-encrypt all stored credentials from old_cipher to new_cipher.

    Args:
        db_pool: asyncpg-compatible connection pool.
        old_cipher: Cipher holding the key the rows were written with.
        new_cipher: Cipher holding the key to rotate to.
        batch_size: Number of rows to process per batch/transaction.

    Returns:
        Stats dict with keys: total, rotated, errors, skipped.

    Raises:
        ValueError: If batch_size is not positive.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    stats = {"total": 0, "rotated": 0, "errors": 0, "skipped": 0}
    migration = old_cipher is new_cipher
    logger.info(
        "Starting %s (batch_size=%d)",
        "legacy token migration" if migration else "key rotation",
        batch_size,
    )

    for table in SECRET_COLUMNS:
        await _rotate_table(
            db_pool, table, old_cipher, new_cipher, batch_size, stats,
        )

    logger.info("Key rotation complete: %s", stats)
    return stats
