"""SQLModel database engine for the key/value storage backend."""
from sqlmodel import SQLModel, create_engine
from pavilo.core.config import settings

# Import models so SQLModel.metadata knows about all tables
import pavilo.models.stored  # noqa: F401

engine = create_engine(
    settings.DATABASE_URL,
    connect_args={"check_same_thread": False},
    echo=False,
)


def create_db_and_tables() -> None:
    """Create all tables defined in SQLModel models."""
    SQLModel.metadata.create_all(engine)
