# medminder/db/database.py
# MySQL (AWS RDS) connection setup; SQLite is accepted for local runs
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.engine import URL, make_url
from sqlalchemy.pool import StaticPool

from medminder.config.settings import settings


def build_url():
    if settings.database_url:
        return make_url(settings.database_url)

    return URL.create(
        "mysql+pymysql",
        username=settings.db_user,
        password=settings.db_pass,
        host=settings.db_host,
        port=settings.db_port,
        database=settings.db_name,
    )


def build_engine(url):
    url = make_url(url)
    if url.get_backend_name() == "sqlite":
        # one shared connection so an in-memory database survives across sessions
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    return create_engine(
        url,
        pool_pre_ping=True,     # detect dropped connections
        pool_recycle=1800,      # refresh connections every 30 minutes
        pool_size=5,
        max_overflow=10,
    )


engine = build_engine(build_url())

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# per-request session for FastAPI dependency injection
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
