"""
Database - SQLAlchemy storage schema

Nomes de tabelas/colunas seguem o schema herdado do backend hospedado
(``profiles``, ``job_stage``, ``candidate_status`` ...). A conversão para o
formato da UI fica em ``talentos.data.mapping``.
"""

import logging
import uuid
from pathlib import Path
from datetime import datetime
from typing import Iterator, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import Session, declarative_base, relationship, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def new_id() -> str:
    return uuid.uuid4().hex


# ============ Modelos ============

class Profile(Base):
    """Usuário do sistema (recrutador ou admin)."""
    __tablename__ = "profiles"

    id = Column(String(64), primary_key=True, default=new_id)
    name = Column(String(200), nullable=False)
    email = Column(String(256), nullable=False, default="", index=True)
    user_role = Column(String(32), nullable=False, default="Junior Recruiter")
    status = Column(String(16), nullable=False, default="Ativo")
    avatar_url = Column(String(512), nullable=True)
    bio = Column(Text, nullable=True)
    preferences = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.now)


class Client(Base):
    __tablename__ = "clients"

    id = Column(String(64), primary_key=True, default=new_id)
    name = Column(String(200), nullable=False, index=True)
    industry = Column(String(200), default="")
    contact_name = Column(String(200), default="")
    contact_email = Column(String(256), default="")
    phone = Column(String(64), default="")
    status = Column(String(32), nullable=False, default="Prospect")
    contract_value = Column(String(128), nullable=True)
    logo_url = Column(String(512), nullable=True)
    created_at = Column(DateTime, default=datetime.now)


class Job(Base):
    __tablename__ = "jobs"

    id = Column(String(64), primary_key=True, default=new_id)
    title = Column(String(300), nullable=False)
    company_name = Column(String(200), nullable=False, index=True)
    job_stage = Column(String(100), nullable=False, default="Vagas Abertas", index=True)
    priority = Column(String(32), nullable=True)
    tag_label = Column(String(64), nullable=True)
    tag_color = Column(String(128), nullable=True)
    progress = Column(Integer, default=0)
    days_remaining = Column(Integer, nullable=True)
    recruiter_id = Column(String(64), ForeignKey("profiles.id"), nullable=False, index=True)
    salary_min = Column(Float, nullable=True)
    salary_max = Column(Float, nullable=True)
    description = Column(Text, nullable=True)
    requirements = Column(JSON, default=list)
    deadline = Column(Date, nullable=True)
    trashed = Column(Boolean, default=False, nullable=False)
    position = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.now)

    recruiter = relationship("Profile", lazy="joined")


class Candidate(Base):
    __tablename__ = "candidates"

    id = Column(String(64), primary_key=True, default=new_id)
    job_id = Column(String(64), ForeignKey("jobs.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    email = Column(String(256), default="")
    phone = Column(String(64), default="")
    candidate_status = Column(String(32), nullable=False, default="Triagem")
    candidate_stage = Column(String(100), nullable=False, default="Triagem", index=True)
    resume_url = Column(String(1024), nullable=True)
    resume_name = Column(String(256), nullable=True)
    skills = Column(JSON, default=list)
    source = Column(String(64), default="Manual")
    location = Column(String(200), default="")
    current_job_role = Column(String(200), default="")
    seniority = Column(String(32), default="Pleno")
    trashed = Column(Boolean, default=False, nullable=False)
    position = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.now)

    notes = relationship(
        "CandidateNote",
        back_populates="candidate",
        order_by="CandidateNote.created_at",
        cascade="all, delete-orphan",
        lazy="select",
    )


class CandidateNote(Base):
    __tablename__ = "candidate_notes"

    id = Column(String(64), primary_key=True, default=new_id)
    candidate_id = Column(String(64), ForeignKey("candidates.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    author_id = Column(String(64), nullable=True)
    author_name = Column(String(200), default="")
    author_avatar = Column(String(512), nullable=True)
    created_at = Column(DateTime, default=datetime.now)

    candidate = relationship("Candidate", back_populates="notes")


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(64), primary_key=True, default=new_id)
    user_id = Column(String(64), ForeignKey("profiles.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    message = Column(Text, default="")
    notification_type = Column(String(16), default="info")
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.now, index=True)


class BoardColumn(Base):
    """Coluna de um kanban (``jobs`` ou ``candidates``): título e ordem editáveis."""
    __tablename__ = "board_columns"
    __table_args__ = (UniqueConstraint("board", "column_id", name="uq_board_column"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    board = Column(String(32), nullable=False, index=True)
    column_id = Column(String(100), nullable=False)
    title = Column(String(100), nullable=False)
    color = Column(String(64), default="")
    position = Column(Integer, default=0, nullable=False)
    custom = Column(Boolean, default=False, nullable=False)


# ============ Conexão ============

_engine = None
_SessionLocal = None


def make_engine(url: str):
    """Cria engine; SQLite em memória compartilha uma única conexão."""
    kwargs = {}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url or url == "sqlite://":
            kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


def init_db(url: Optional[str] = None):
    """Inicializa (ou reinicializa) engine e fábrica de sessões."""
    global _engine, _SessionLocal
    url = url or settings.DATABASE_URL
    if url.startswith("sqlite:///") and ":memory:" not in url:
        Path(url[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)
    _engine = make_engine(url)
    Base.metadata.create_all(_engine)
    _SessionLocal = sessionmaker(bind=_engine, expire_on_commit=False)
    logger.info("Database initialized", extra={"ctx": {"url": url.split("@")[-1]}})
    return _engine


def get_engine():
    if _engine is None:
        init_db()
    return _engine


def get_session() -> Session:
    """Abre uma sessão avulsa (scripts, seed)."""
    if _SessionLocal is None:
        init_db()
    return _SessionLocal()


def get_db() -> Iterator[Session]:
    """Dependência FastAPI: uma sessão por requisição."""
    session = get_session()
    try:
        yield session
    finally:
        session.close()
