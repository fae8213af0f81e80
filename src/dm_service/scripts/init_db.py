"""Create tables and install the optional messaging stored functions.

    python -m dm_service.scripts.init_db [--without-procedures]

Deployments without the functions run on the table-query strategy.
"""
from __future__ import annotations

import argparse
import asyncio
import logging

from sqlalchemy import text

from dm_service.infrastructure.db import models  # noqa: F401  (registers tables)
from dm_service.infrastructure.db.base import Base
from dm_service.infrastructure.db.session import engine

logger = logging.getLogger(__name__)

PROCEDURES_DDL = [
    """
    CREATE OR REPLACE FUNCTION get_or_create_conversation(p_user_one_id uuid, p_user_two_id uuid)
    RETURNS uuid
    LANGUAGE plpgsql AS $$
    DECLARE
        v_one uuid := LEAST(p_user_one_id::text, p_user_two_id::text)::uuid;
        v_two uuid := GREATEST(p_user_one_id::text, p_user_two_id::text)::uuid;
        v_id uuid;
    BEGIN
        INSERT INTO conversations (user_one_id, user_two_id)
        VALUES (v_one, v_two)
        ON CONFLICT ON CONSTRAINT uq_conversation_pair DO NOTHING
        RETURNING id INTO v_id;
        IF v_id IS NULL THEN
            SELECT c.id INTO v_id FROM conversations c
            WHERE c.user_one_id = v_one AND c.user_two_id = v_two;
        END IF;
        RETURN v_id;
    END;
    $$
    """,
    "DROP FUNCTION IF EXISTS get_user_conversations(uuid, integer, integer)",
    """
    CREATE OR REPLACE FUNCTION get_user_conversations(
        p_user_id uuid, p_limit integer DEFAULT 20, p_offset integer DEFAULT 0
    )
    RETURNS TABLE (
        conversation_id uuid,
        other_user_id uuid,
        other_user_name text,
        other_user_profile_picture text,
        last_message text,
        last_message_at timestamptz,
        unread_count bigint,
        other_user_is_online boolean,
        other_user_last_seen timestamptz
    )
    LANGUAGE sql STABLE AS $$
        SELECT c.id,
               o.other_id,
               p.name,
               p.profile_picture,
               c.last_message,
               c.last_message_at,
               (SELECT count(*) FROM messages m
                 WHERE m.conversation_id = c.id
                   AND m.sender_id <> p_user_id
                   AND m.created_at > COALESCE(r.last_read_at, '-infinity'::timestamptz)),
               COALESCE(s.is_online, false),
               s.last_seen
        FROM conversations c
        CROSS JOIN LATERAL (
            SELECT CASE WHEN c.user_one_id = p_user_id THEN c.user_two_id
                        ELSE c.user_one_id END AS other_id
        ) o
        LEFT JOIN profiles p ON p.user_id = o.other_id
        LEFT JOIN conversation_reads r ON r.conversation_id = c.id AND r.user_id = p_user_id
        LEFT JOIN user_status s ON s.user_id = o.other_id
        WHERE (c.user_one_id = p_user_id AND NOT c.hidden_by_user_one)
           OR (c.user_two_id = p_user_id AND NOT c.hidden_by_user_two)
        ORDER BY c.last_message_at DESC NULLS LAST, c.id
        LIMIT p_limit OFFSET p_offset
    $$
    """,
    """
    CREATE OR REPLACE FUNCTION get_conversation_messages(
        p_conversation_id uuid, p_user_id uuid, p_limit integer DEFAULT 40, p_offset integer DEFAULT 0
    )
    RETURNS TABLE (
        message_id uuid,
        conversation_id uuid,
        sender_id uuid,
        content text,
        created_at timestamptz
    )
    LANGUAGE plpgsql STABLE AS $$
    BEGIN
        IF NOT EXISTS (SELECT 1 FROM conversations c WHERE c.id = p_conversation_id) THEN
            RAISE EXCEPTION 'conversation % not found', p_conversation_id USING ERRCODE = 'P0002';
        END IF;
        IF NOT EXISTS (
            SELECT 1 FROM conversations c
            WHERE c.id = p_conversation_id AND p_user_id IN (c.user_one_id, c.user_two_id)
        ) THEN
            RAISE EXCEPTION 'not a participant' USING ERRCODE = '42501';
        END IF;
        RETURN QUERY
            SELECT m.id, m.conversation_id, m.sender_id, m.content, m.created_at
            FROM messages m
            WHERE m.conversation_id = p_conversation_id
            ORDER BY m.created_at DESC, m.id DESC
            LIMIT p_limit OFFSET p_offset;
    END;
    $$
    """,
    """
    CREATE OR REPLACE FUNCTION mark_conversation_as_read(p_user_id uuid, p_conversation_id uuid)
    RETURNS void
    LANGUAGE plpgsql AS $$
    BEGIN
        IF NOT EXISTS (
            SELECT 1 FROM conversations c
            WHERE c.id = p_conversation_id AND p_user_id IN (c.user_one_id, c.user_two_id)
        ) THEN
            RAISE EXCEPTION 'not a participant' USING ERRCODE = '42501';
        END IF;
        INSERT INTO conversation_reads (user_id, conversation_id, last_read_at)
        VALUES (p_user_id, p_conversation_id, now())
        ON CONFLICT ON CONSTRAINT uq_conversation_read_member
        DO UPDATE SET last_read_at = EXCLUDED.last_read_at;
    END;
    $$
    """,
]


async def init_db(with_procedures: bool = True) -> None:
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            logger.info("Tables ready: %s", ", ".join(sorted(Base.metadata.tables)))
            if with_procedures:
                for ddl in PROCEDURES_DDL:
                    await conn.execute(text(ddl))
                logger.info("Installed %d stored functions", len(PROCEDURES_DDL))
    finally:
        await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--without-procedures",
        action="store_true",
        help="only create tables; the service will use table queries",
    )
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)
    asyncio.run(init_db(with_procedures=not args.without_procedures))


if __name__ == "__main__":
    main()
