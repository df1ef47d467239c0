from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from grin_gateway.config import DATABASE_URL
from grin_gateway.models.database_models import Base


engine = create_engine(DATABASE_URL, pool_pre_ping=True)
sessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=engine):
    Base.metadata.create_all(bind)


def get_db():
    db = sessionLocal()
    try:
        yield db
    finally:
        db.close()
