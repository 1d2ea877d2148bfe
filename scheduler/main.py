import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from scheduler.clients.appointment_client import HttpAppointmentClient, build_http_client
from scheduler.core import config
from scheduler.database import Base, engine, ensure_appointment_schema, ensure_working_hours_schema
from scheduler.models import appointment, doctor, notification, user, working_hour  # noqa: F401
from scheduler.routes import appointment_routes, doctor_routes
from scheduler.services.cache import build_cache

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title='Doctor Scheduling API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


@app.on_event('startup')
def initialize_services() -> None:
    config.validate_runtime_config()

    app.state.cache = build_cache(config.REDIS_URL, timeout_seconds=config.UPSTREAM_TIMEOUT_SECONDS)
    app.state.appointment_client = None
    if config.APPOINTMENT_SERVICE_URL:
        logger.info('Reading booked slots from %s', config.APPOINTMENT_SERVICE_URL)
        app.state.appointment_client = HttpAppointmentClient(
            build_http_client(config.APPOINTMENT_SERVICE_URL, config.UPSTREAM_TIMEOUT_SECONDS)
        )

    try:
        Base.metadata.create_all(bind=engine)
        ensure_working_hours_schema()
        ensure_appointment_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.on_event('shutdown')
def close_clients() -> None:
    client = getattr(app.state, 'appointment_client', None)
    if client is not None:
        client.close()
    close_cache = getattr(getattr(app.state, 'cache', None), 'close', None)
    if close_cache is not None:
        close_cache()


@app.get('/')
def root():
    return {'status': 'Doctor Scheduling API Running'}


app.include_router(doctor_routes.router, prefix='/doctors')
app.include_router(appointment_routes.router, prefix='/appointments')
