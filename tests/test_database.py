"""
Tests for database.py - SQLite-backed collaborators.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from autopopulate.database import (
    DataValue,
    FieldMetadata,
    SqlMetadataStore,
    SqlRecordStore,
    SqlTimeline,
    get_session,
    import_project,
    init_database,
)
from autopopulate.pipeline import DefaultResolutionPipeline
from autopopulate.piping import PipingService


class TestDatabaseInit:
    """Test database initialization."""

    def test_init_creates_database_file(self, tmp_path):
        """Test that init_database creates the database file."""
        db_path = tmp_path / "test.db"
        assert not db_path.exists()

        init_database(db_path)

        assert db_path.exists()

    def test_init_creates_parent_directories(self, tmp_path):
        """Test that init_database creates parent directories if missing."""
        db_path = tmp_path / "nested" / "dir" / "test.db"

        init_database(db_path)

        assert db_path.exists()

    def test_field_requires_form(self, tmp_path):
        db_path = tmp_path / "test.db"
        init_database(db_path)
        session = get_session(db_path)
        session.add(FieldMetadata(field_name="orphan", form_name=None))

        with pytest.raises(IntegrityError):
            session.commit()
        session.close()


class TestImportedProject:
    """Project fixture imported into SQLite."""

    @pytest.fixture
    def db_session(self, tmp_path, project):
        db_path = tmp_path / "project.db"
        init_database(db_path)
        session = get_session(db_path)
        import_project(session, project)
        yield session
        session.close()

    def test_import_counts(self, tmp_path, project):
        db_path = tmp_path / "counts.db"
        init_database(db_path)
        session = get_session(db_path)
        counts = import_project(session, project)
        session.close()

        assert counts["fields"] == 10
        assert counts["events"] == 3
        # baseline: 4 scalars + 2 ticked symptoms; week_1: weight + 2 ticked symptoms
        assert counts["values"] == 9

    def test_metadata_order_and_choices(self, db_session):
        fields = SqlMetadataStore(db_session).get_fields()
        assert [f.name for f in fields][:3] == ["record_id", "age", "consent"]
        consent = fields[2]
        assert consent.enum_options == {"1": "Yes", "2": "No"}
        assert [f.name for f in SqlMetadataStore(db_session).get_fields("followup")] == ["followup_weight"]

    def test_timeline(self, db_session):
        timeline = SqlTimeline(db_session)
        assert timeline.arm_for_event("week_1") == "1"
        assert timeline.events_for_arm("1") == ["baseline", "week_1", "week_2"]
        assert timeline.forms_at_event("week_2") == {"visit", "followup"}
        assert timeline.arm_for_event("nowhere") is None

    def test_snapshot_checkboxes(self, db_session):
        snapshot = SqlRecordStore(db_session).get_snapshot("1")
        assert snapshot["week_1"]["weight"] == "72"
        assert snapshot["week_1"]["symptoms"] == {"b": "1", "a": "1"}
        assert snapshot["baseline"]["symptoms"] == {"a": "1", "c": "1"}

    def test_form_has_data(self, db_session):
        records = SqlRecordStore(db_session)
        assert records.form_has_data("1", "visit", "week_1")
        assert not records.form_has_data("1", "visit", "week_2")
        assert not records.form_has_data("2", "visit", "week_1")

    def test_reimport_replaces_record_data(self, db_session, project):
        import_project(db_session, project)
        assert db_session.query(DataValue).filter_by(record="1").count() == 9

    def test_pipeline_over_database(self, db_session, visit_context):
        metadata = SqlMetadataStore(db_session)
        records = SqlRecordStore(db_session)
        pipeline = DefaultResolutionPipeline(metadata, SqlTimeline(db_session), records, PipingService(records, metadata))

        values = {r.field_name: r.value for r in pipeline.run(visit_context).resolved}
        assert values == {
            "weight": "72",
            "weight_prev": "72",
            "symptoms": "a,b",
            "consent_copy": "1",
            "age_note": "Age: 34",
            "status": "new",
        }
