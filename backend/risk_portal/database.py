from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

Base = declarative_base()

def make_engine(database_url: str):
    kwargs = {}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, otherwise every session sees a fresh empty db
            kwargs["poolclass"] = StaticPool
    return create_engine(database_url, future=True, pool_pre_ping=True, **kwargs)

def make_session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

def init_db(engine):
    from .models_db import CollectionRecord  # noqa
    Base.metadata.create_all(bind=engine)
