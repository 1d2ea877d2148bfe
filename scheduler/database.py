from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from scheduler.core import config


def _engine_options(database_url: str) -> dict:
    if database_url.startswith('sqlite'):
        return {'connect_args': {'check_same_thread': False}}

    options = {
        'pool_pre_ping': True,
        'pool_timeout': config.DATABASE_POOL_TIMEOUT_SECONDS,
    }
    if database_url.startswith('postgresql'):
        statement_timeout_ms = int(config.DATABASE_POOL_TIMEOUT_SECONDS * 1000)
        options['connect_args'] = {'options': f'-c statement_timeout={statement_timeout_ms}'}
    return options


engine = create_engine(config.DATABASE_URL, echo=config.DATABASE_ECHO, **_engine_options(config.DATABASE_URL))

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_working_hours_schema_checked = False
_appointment_schema_checked = False


def ensure_working_hours_schema() -> None:
    global _working_hours_schema_checked

    if _working_hours_schema_checked:
        return

    with _schema_lock:
        if _working_hours_schema_checked:
            return

        inspector = inspect(engine)

        if 'working_hours' not in inspector.get_table_names():
            _working_hours_schema_checked = True
            return

        with engine.begin() as connection:
            connection.execute(
                text(
                    'CREATE UNIQUE INDEX IF NOT EXISTS uq_working_hours_rule '
                    'ON working_hours(doctor_id, day_of_week, hour, minute)'
                )
            )

        _working_hours_schema_checked = True


def ensure_appointment_schema() -> None:
    global _appointment_schema_checked

    if _appointment_schema_checked:
        return

    with _schema_lock:
        if _appointment_schema_checked:
            return

        inspector = inspect(engine)

        if 'appointments' not in inspector.get_table_names():
            _appointment_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('appointments')}
        migration_steps = [
            ('patient_model', "ALTER TABLE appointments ADD COLUMN patient_model VARCHAR DEFAULT 'User'"),
            ('examination_method', "ALTER TABLE appointments ADD COLUMN examination_method VARCHAR DEFAULT 'at_clinic'"),
            ('reason', 'ALTER TABLE appointments ADD COLUMN reason VARCHAR'),
            ('notes', 'ALTER TABLE appointments ADD COLUMN notes VARCHAR'),
            ('total_cost', 'ALTER TABLE appointments ADD COLUMN total_cost FLOAT'),
            ('location', 'ALTER TABLE appointments ADD COLUMN location VARCHAR'),
            ('updated_at', 'ALTER TABLE appointments ADD COLUMN updated_at TIMESTAMP'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_doctor_date ON appointments(doctor_id, date)')
            )
            connection.execute(
                text(
                    'CREATE UNIQUE INDEX IF NOT EXISTS uq_appointments_pending_slot '
                    "ON appointments(doctor_id, date, time) WHERE status = 'pending'"
                )
            )

        _appointment_schema_checked = True
