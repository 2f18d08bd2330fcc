from datetime import date
from typing import Optional, List, Dict, Union, Any
from pydantic import BaseModel, Field, field_validator
import math

from ..utils.text import split_list


def _coerce_str(v):
    if v is None: return ""
    if isinstance(v, float) and math.isnan(v): return ""
    return v  # pydantic ainda pode converter para str se necessário


def _coerce_list(v):
    # formulário manda "React, Node.js"; API manda lista
    if v is None: return v
    return split_list(v)


# =========================
# Usuários
# =========================
class UserCreate(BaseModel):
    id: Optional[str] = None
    name: str
    email: str
    role: Optional[str] = "Junior Recruiter"
    status: Optional[str] = "Ativo"
    avatar: Optional[str] = None
    bio: Optional[str] = None
    preferences: Optional[Dict[str, Any]] = None

    @field_validator("name", "email", mode="before")
    @classmethod
    def _clean(cls, v): return _coerce_str(v)


class UserUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    status: Optional[str] = None
    avatar: Optional[str] = None
    bio: Optional[str] = None
    preferences: Optional[Dict[str, Any]] = None


class UserOut(BaseModel):
    id: str
    name: str
    email: str
    role: str
    status: str
    avatar: str = ""
    bio: Optional[str] = None
    preferences: Optional[Dict[str, Any]] = None


# =========================
# Clientes
# =========================
class ClientCreate(BaseModel):
    name: str
    industry: Optional[str] = ""
    contactName: Optional[str] = ""
    contactEmail: Optional[str] = ""
    phone: Optional[str] = ""
    status: Optional[str] = "Prospect"
    contractValue: Optional[str] = None
    logo: Optional[str] = None

    @field_validator("name", "industry", "contactName", "contactEmail", "phone", mode="before")
    @classmethod
    def _clean(cls, v): return _coerce_str(v)


class ClientUpdate(BaseModel):
    name: Optional[str] = None
    industry: Optional[str] = None
    contactName: Optional[str] = None
    contactEmail: Optional[str] = None
    phone: Optional[str] = None
    status: Optional[str] = None
    contractValue: Optional[str] = None
    logo: Optional[str] = None


class ClientOut(BaseModel):
    id: str
    name: str
    industry: Optional[str] = ""
    contactName: Optional[str] = ""
    contactEmail: Optional[str] = ""
    phone: Optional[str] = ""
    status: str
    contractValue: Optional[str] = None
    logo: Optional[str] = None
    activeJobs: int = 0


# =========================
# Vagas
# =========================
class Tag(BaseModel):
    label: str
    color: str = ""


class RecruiterRef(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    avatar: Optional[str] = None


class JobCreate(BaseModel):
    title: str
    company: str
    priority: Optional[str] = None
    tag: Optional[Tag] = None
    daysRemaining: Optional[int] = None
    recruiter: Optional[RecruiterRef] = None
    recruiterId: Optional[str] = None
    salaryMin: Optional[float] = None
    salaryMax: Optional[float] = None
    description: Optional[str] = None
    requirements: Optional[Union[List[str], str]] = None
    deadline: Optional[date] = None

    @field_validator("title", "company", mode="before")
    @classmethod
    def _clean(cls, v): return _coerce_str(v)

    @field_validator("requirements", mode="before")
    @classmethod
    def _split(cls, v): return _coerce_list(v)


class JobUpdate(BaseModel):
    title: Optional[str] = None
    company: Optional[str] = None
    stage: Optional[str] = None
    priority: Optional[str] = None
    tag: Optional[Tag] = None
    progress: Optional[int] = Field(None, ge=0, le=100)
    daysRemaining: Optional[int] = None
    recruiter: Optional[RecruiterRef] = None
    recruiterId: Optional[str] = None
    salaryMin: Optional[float] = None
    salaryMax: Optional[float] = None
    description: Optional[str] = None
    requirements: Optional[Union[List[str], str]] = None
    deadline: Optional[date] = None

    @field_validator("requirements", mode="before")
    @classmethod
    def _split(cls, v): return _coerce_list(v)


class JobOut(BaseModel):
    id: str
    title: str
    company: str
    stage: str
    priority: Optional[str] = None
    tag: Optional[Tag] = None
    progress: int = 0
    daysRemaining: Optional[int] = None
    recruiter: RecruiterRef
    candidatesCount: int = 0
    salaryMin: Optional[float] = None
    salaryMax: Optional[float] = None
    description: Optional[str] = None
    requirements: List[str] = []
    deadline: Optional[str] = None
    trashed: bool = False
    position: int = 0


class StageMove(BaseModel):
    stage: str
    index: Optional[int] = Field(None, ge=0)


# =========================
# Candidatos
# =========================
class NoteIn(BaseModel):
    content: str

    @field_validator("content", mode="before")
    @classmethod
    def _clean(cls, v): return _coerce_str(v)


class NoteOut(BaseModel):
    id: str
    content: str
    authorId: Optional[str] = None
    authorName: Optional[str] = ""
    authorAvatar: str = ""
    createdAt: Optional[str] = None


class CandidateCreate(BaseModel):
    jobId: str
    name: str
    email: Optional[str] = ""
    phone: Optional[str] = ""
    status: Optional[str] = None
    stage: Optional[str] = None
    resumeUrl: Optional[str] = None
    resumeName: Optional[str] = None
    skills: Optional[Union[List[str], str]] = None
    source: Optional[str] = None
    location: Optional[str] = ""
    currentRole: Optional[str] = ""
    seniority: Optional[str] = None
    note: Optional[str] = None

    @field_validator("name", "email", "phone", "location", "currentRole", mode="before")
    @classmethod
    def _clean(cls, v): return _coerce_str(v)

    @field_validator("skills", mode="before")
    @classmethod
    def _split(cls, v): return _coerce_list(v)


class CandidateUpdate(BaseModel):
    jobId: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    status: Optional[str] = None
    stage: Optional[str] = None
    resumeUrl: Optional[str] = None
    resumeName: Optional[str] = None
    skills: Optional[Union[List[str], str]] = None
    source: Optional[str] = None
    location: Optional[str] = None
    currentRole: Optional[str] = None
    seniority: Optional[str] = None

    @field_validator("skills", mode="before")
    @classmethod
    def _split(cls, v): return _coerce_list(v)


class CandidateOut(BaseModel):
    id: str
    jobId: str
    initials: str
    name: str
    email: str = ""
    phone: str = ""
    status: str
    stage: str
    badgeText: str
    resumeUrl: Optional[str] = None
    resumeName: Optional[str] = None
    skills: List[str] = []
    source: Optional[str] = None
    location: Optional[str] = None
    currentRole: Optional[str] = None
    seniority: Optional[str] = None
    trashed: bool = False
    position: int = 0
    notes: Optional[List[NoteOut]] = None


class CandidateFacets(BaseModel):
    skills: List[str]
    locations: List[str]


# =========================
# Notificações
# =========================
class NotificationOut(BaseModel):
    id: str
    title: str
    message: str = ""
    time: Optional[str] = None
    read: bool = False
    type: str = "info"


class NotificationList(BaseModel):
    items: List[NotificationOut]
    unread: int


# =========================
# Kanban
# =========================
class ColumnOut(BaseModel):
    id: str
    title: str
    color: str = ""
    count: int = 0
    custom: bool = False


class ColumnCreate(BaseModel):
    title: str
    color: Optional[str] = ""

    @field_validator("title", "color", mode="before")
    @classmethod
    def _clean(cls, v): return _coerce_str(v)


class ColumnRename(BaseModel):
    title: str

    @field_validator("title", mode="before")
    @classmethod
    def _clean(cls, v): return _coerce_str(v)


class ColumnReorder(BaseModel):
    fromIndex: int
    toIndex: int


class CardMove(BaseModel):
    id: str
    stage: str
    index: Optional[int] = Field(None, ge=0)
