"""Tests for store models and connection helpers."""

from datetime import datetime, timezone

import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError

from prenatal_chat.db.connection import create_db_engine, ping, session_scope, create_session_factory
from prenatal_chat.db.models import Conversation, Favorite, as_utc, generate_uuid, utc_now


class TestSchema:
    def test_tables_created(self, db_engine):
        names = set(inspect(db_engine).get_table_names())
        assert {"conversations", "messages", "favorites"} <= names

    def test_indexes_present(self, db_engine):
        insp = inspect(db_engine)
        conv_index_cols = [i["column_names"] for i in insp.get_indexes("conversations")]
        msg_index_cols = [i["column_names"] for i in insp.get_indexes("messages")]
        assert ["user_id", "updated_at"] in conv_index_cols
        assert ["conversation_id", "timestamp"] in msg_index_cols

    def test_favorite_unique_per_user_and_message(self, db_session):
        def make(favorite_id):
            return Favorite(
                favorite_id=favorite_id,
                user_id="u1",
                message_id="m1",
                conversation_id="c1",
                message_content="x",
                message_timestamp=utc_now(),
                favorited_at=utc_now(),
            )

        db_session.add(make("f1"))
        db_session.commit()
        db_session.add(make("f2"))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()


class TestHelpers:
    def test_as_utc_naive(self):
        naive = datetime(2026, 1, 1, 12, 0)
        assert as_utc(naive).tzinfo == timezone.utc

    def test_as_utc_none(self):
        assert as_utc(None) is None

    def test_generate_uuid_unique(self):
        assert generate_uuid() != generate_uuid()

    def test_to_dict_has_utc_timestamps(self, db_session):
        now = utc_now()
        db_session.add(
            Conversation(
                conversation_id="c1",
                user_id="u1",
                title="t",
                created_at=now,
                updated_at=now,
                message_count=0,
                last_message_preview="",
            )
        )
        db_session.commit()
        db_session.expire_all()
        conv = db_session.query(Conversation).filter_by(conversation_id="c1").one()
        assert conv.to_dict()["created_at"].tzinfo is not None


class TestConnection:
    def test_ping(self, db_session):
        ping(db_session)

    def test_session_scope_rolls_back_on_error(self, db_engine):
        factory = create_session_factory(db_engine)
        with pytest.raises(RuntimeError):
            with session_scope(factory) as db:
                db.add(
                    Conversation(
                        conversation_id="c-rollback",
                        user_id="u1",
                        title="t",
                        created_at=utc_now(),
                        updated_at=utc_now(),
                        message_count=0,
                        last_message_preview="",
                    )
                )
                db.flush()
                raise RuntimeError("boom")

        with session_scope(factory) as db:
            assert db.query(Conversation).filter_by(conversation_id="c-rollback").first() is None

    def test_file_engine(self, tmp_path):
        engine = create_db_engine(f"sqlite:///{tmp_path / 'chat.db'}")
        try:
            with engine.connect() as conn:
                mode = conn.exec_driver_sql("PRAGMA journal_mode").scalar()
            assert mode.lower() == "wal"
        finally:
            engine.dispose()
