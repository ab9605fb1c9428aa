from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from gamemeta.config.settings import get_settings

engine = create_engine(get_settings().database_url, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
