import base64
import logging
import ssl
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from fastapi import Request
from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Integer, String, Text, create_engine, text
)
from sqlalchemy.orm import Session, declarative_base, relationship, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp; every stored datetime uses this form"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# Database Models
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    role = Column(String(20), nullable=False)
    password_hash = Column(String(255), nullable=False)
    otp_code = Column(String(6))
    otp_expires_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow)


class System(Base):
    __tablename__ = "systems"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), unique=True, nullable=False)

    plants = relationship("Plant", back_populates="system")


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False)
    type = Column(String(20), nullable=False, default="AYUSH")  # AYUSH, Ailment, UseCase
    icon_url = Column(String(512))
    display_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class Plant(Base):
    __tablename__ = "plants"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    botanical_name = Column(String(255))
    tags = Column(Text)  # JSON array
    status = Column(String(20), nullable=False, default="draft")  # draft, published
    featured = Column(Boolean, nullable=False, default=False)
    hero_image = Column(String(512))
    video_url = Column(String(512))
    model_url = Column(String(512))
    benefits = Column(Text)  # JSON array
    description = Column(Text)
    system_id = Column(Integer, ForeignKey("systems.id"))
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    system = relationship("System", back_populates="plants")


def build_ssl_context(ca_path: Optional[str] = None, ca_b64: Optional[str] = None) -> ssl.SSLContext:
    """TLS context for the MySQL connection; an inline base64 CA wins over a path"""
    if ca_b64:
        context = ssl.create_default_context(cadata=base64.b64decode(ca_b64).decode("utf-8"))
    elif ca_path:
        context = ssl.create_default_context(cafile=str(Path(ca_path).expanduser()))
    else:
        logger.warning("MySQL SSL requested but no CA provided; using system trust store")
        context = ssl.create_default_context()
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    return context


class Database:
    """Owns the engine, its connection pool and the session factory.

    Built once at startup and disposed at shutdown. Callers get sessions from
    it rather than from a module-level engine.
    """

    def __init__(
        self,
        url: str,
        pool_size: int = 10,
        pool_timeout: int = 30,
        echo: bool = False,
        connect_args: Optional[Dict[str, Any]] = None,
    ):
        self.url = url
        engine_kwargs: Dict[str, Any] = {"echo": echo}
        connect_args = dict(connect_args or {})

        if url.startswith("sqlite"):
            connect_args.setdefault("check_same_thread", False)
            if ":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://"):
                engine_kwargs["poolclass"] = StaticPool
        else:
            # Fixed-size pool: callers wait for a free connection up to pool_timeout
            engine_kwargs.update(
                pool_size=pool_size,
                max_overflow=0,
                pool_timeout=pool_timeout,
                pool_pre_ping=True,
                pool_recycle=3600,
            )

        self.engine = create_engine(url, connect_args=connect_args, **engine_kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    @classmethod
    def from_settings(cls, settings) -> "Database":
        connect_args = {}
        if settings.mysql_ssl and not settings.sqlalchemy_url.startswith("sqlite"):
            connect_args["ssl"] = build_ssl_context(settings.mysql_ssl_ca, settings.mysql_ssl_ca_b64)

        return cls(
            settings.sqlalchemy_url,
            pool_size=settings.db_pool_size,
            pool_timeout=settings.db_pool_timeout,
            echo=settings.db_echo,
            connect_args=connect_args,
        )

    def create_tables(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def session(self) -> Session:
        return self.SessionLocal()

    def ping(self) -> bool:
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database connection check failed: {e}")
            return False

    def dispose(self) -> None:
        self.engine.dispose()


# Database dependency
def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
