from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

class Base(DeclarativeBase): pass

def make_engine(dsn: str, **kwargs) -> Engine:
    kwargs.setdefault('pool_pre_ping', True)
    return create_engine(dsn, **kwargs)

def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
