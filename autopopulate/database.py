"""
Database schema and connection management.

Uses SQLite with SQLAlchemy for project metadata, the event timeline and
record data. Checkbox data is stored one row per ticked option.
"""

from pathlib import Path
from typing import Dict, List, Optional, Set

from sqlalchemy import Column, Integer, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .choices import format_enum, parse_enum
from .models import FieldDescriptor, RecordSnapshot

Base = declarative_base()


class FieldMetadata(Base):
    """Field definition."""

    __tablename__ = "field_metadata"

    field_name = Column(String, primary_key=True)
    form_name = Column(String, nullable=False)
    field_order = Column(Integer, nullable=False, default=0)
    element_type = Column(String, nullable=False, default="text")
    element_enum = Column(Text, nullable=False, default="")
    misc = Column(Text, nullable=False, default="")  # action tags
    branching_logic = Column(Text, nullable=False, default="")

    def to_descriptor(self) -> FieldDescriptor:
        return FieldDescriptor(
            name=self.field_name,
            form_name=self.form_name,
            element_type=self.element_type,
            annotation_text=self.misc or "",
            enum_options=parse_enum(self.element_enum),
            branching_logic=self.branching_logic or "",
        )


class Event(Base):
    """Event of an arm; position is timeline order."""

    __tablename__ = "events"

    event_id = Column(String, primary_key=True)
    arm = Column(String, nullable=False)
    position = Column(Integer, nullable=False)


class EventForm(Base):
    __tablename__ = "event_forms"

    event_id = Column(String, primary_key=True)
    form_name = Column(String, primary_key=True)


class DataValue(Base):
    """One stored value (record, event, field, instance)."""

    __tablename__ = "record_data"

    id = Column(Integer, primary_key=True, autoincrement=True)
    record = Column(String, nullable=False, index=True)
    event_id = Column(String, nullable=False)
    field_name = Column(String, nullable=False)
    instance = Column(Integer, nullable=False, default=1)
    value = Column(Text, nullable=False, default="")


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)


def get_session(db_path: Path):
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    engine = create_engine(f"sqlite:///{db_path}")
    Session = sessionmaker(bind=engine)
    return Session()


class SqlMetadataStore:
    def __init__(self, session):
        self.session = session

    def get_fields(self, form_name: Optional[str] = None) -> List[FieldDescriptor]:
        query = self.session.query(FieldMetadata)
        if form_name is not None:
            query = query.filter_by(form_name=form_name)
        return [row.to_descriptor() for row in query.order_by(FieldMetadata.field_order)]


class SqlTimeline:
    def __init__(self, session):
        self.session = session

    def arm_for_event(self, event: str) -> Optional[str]:
        row = self.session.query(Event).filter_by(event_id=event).first()
        return row.arm if row else None

    def events_for_arm(self, arm: str) -> List[str]:
        rows = self.session.query(Event).filter_by(arm=arm).order_by(Event.position)
        return [row.event_id for row in rows]

    def forms_at_event(self, event: str) -> Set[str]:
        return {row.form_name for row in self.session.query(EventForm).filter_by(event_id=event)}


class SqlRecordStore:
    """Record data; repeat instances other than 1 are ignored by snapshots."""

    def __init__(self, session):
        self.session = session

    def _checkbox_fields(self) -> Set[str]:
        rows = self.session.query(FieldMetadata.field_name).filter_by(element_type="checkbox")
        return {name for (name,) in rows}

    def get_snapshot(self, record: str) -> RecordSnapshot:
        checkboxes = self._checkbox_fields()
        snapshot: RecordSnapshot = {}
        rows = self.session.query(DataValue).filter_by(record=record, instance=1).order_by(DataValue.id)
        for row in rows:
            values = snapshot.setdefault(row.event_id, {})
            if row.field_name in checkboxes:
                values.setdefault(row.field_name, {})[row.value] = "1"
            else:
                values[row.field_name] = row.value
        return snapshot

    def form_has_data(self, record: str, form_name: str, event: str, instance: int = 1) -> bool:
        row = (
            self.session.query(DataValue)
            .join(FieldMetadata, FieldMetadata.field_name == DataValue.field_name)
            .filter(
                DataValue.record == record,
                DataValue.event_id == event,
                DataValue.instance == instance,
                DataValue.value != "",
                FieldMetadata.form_name == form_name,
            )
            .first()
        )
        return row is not None


def _value_rows(record: str, event: str, name: str, value) -> List[DataValue]:
    if isinstance(value, dict):
        keys = [k for k, flag in value.items() if flag not in (None, False, 0, "0", "")]
    elif isinstance(value, (list, set, frozenset, tuple)):
        keys = list(value)
    else:
        return [DataValue(record=record, event_id=event, field_name=name, value="" if value is None else str(value))]
    return [DataValue(record=record, event_id=event, field_name=name, value=str(k)) for k in keys]


def import_project(session, project) -> Dict[str, int]:
    """
    Write a loaded project (see storage.Project) into the database.

    Field and event definitions are upserted; data of every imported
    record is replaced.

    Returns:
        Counts of imported fields, events and values
    """
    fields = project.metadata.get_fields()
    for order, descriptor in enumerate(fields):
        session.merge(FieldMetadata(
            field_name=descriptor.name,
            form_name=descriptor.form_name,
            field_order=order,
            element_type=descriptor.element_type,
            element_enum=format_enum(descriptor.enum_options),
            misc=descriptor.annotation_text,
            branching_logic=descriptor.branching_logic,
        ))

    events = 0
    for arm, event_list in project.timeline.arms.items():
        for position, event in enumerate(event_list):
            session.merge(Event(event_id=event, arm=arm, position=position))
            for form in sorted(project.timeline.forms_at_event(event)):
                session.merge(EventForm(event_id=event, form_name=form))
            events += 1

    values = 0
    for record, snapshot in project.records.records.items():
        session.query(DataValue).filter_by(record=record).delete()
        for event, field_values in snapshot.items():
            for name, value in field_values.items():
                rows = _value_rows(record, event, name, value)
                session.add_all(rows)
                values += len(rows)

    session.commit()
    return {"fields": len(fields), "events": events, "values": values}
