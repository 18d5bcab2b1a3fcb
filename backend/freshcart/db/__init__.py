import importlib
import logging

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from freshcart.config import settings

log = logging.getLogger("db")

DATABASE_URL = settings.DATABASE_URL
_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, future=True, echo=False, connect_args=_connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

if DATABASE_URL.startswith("sqlite"):

    @event.listens_for(engine, "connect")
    def _enable_sqlite_fks(dbapi_conn, _record):
        cur = dbapi_conn.cursor()
        cur.execute("PRAGMA foreign_keys=ON")
        cur.close()


# add new model modules here so their tables are registered on Base.metadata
MODEL_MODULES = [
    "freshcart.models.category",
    "freshcart.models.item",
    "freshcart.models.order",
]


def init_db(reset: bool = False):
    """
    Initialize DB schema.

    Imports every module in MODEL_MODULES so the metadata is complete, then
    creates missing tables. With reset=True all tables are dropped first,
    which is what the test suite uses to start from a clean database.
    """
    for mod in MODEL_MODULES:
        importlib.import_module(mod)

    if reset:
        log.info("init_db: dropping all tables")
        Base.metadata.drop_all(bind=engine)

    Base.metadata.create_all(bind=engine)
    log.info("init_db: tables ready (%s)", ", ".join(sorted(Base.metadata.tables)))


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
