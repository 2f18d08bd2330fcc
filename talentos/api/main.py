# talentos/api/main.py
from contextlib import asynccontextmanager
from typing import Optional, List

import logging
import time

from fastapi import Depends, FastAPI, Header, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy.orm import Session
from starlette.requests import Request
from starlette.responses import Response as StarletteResponse

from ..config import settings
from ..data import db, mapping, schema
from ..data.loaders import seed_from_file
from ..errors import TalentosError
from ..monitoring import audit
from ..monitoring.logs import configure_logging
from ..monitoring.metrics import REQUESTS, LATENCY
from ..pipeline import board as kb
from ..services import boards, candidates, clients, identity, jobs, notifications, reports, users
from .schemas import (
    CandidateCreate,
    CandidateFacets,
    CandidateOut,
    CandidateUpdate,
    CardMove,
    ClientCreate,
    ClientOut,
    ClientUpdate,
    ColumnCreate,
    ColumnOut,
    ColumnRename,
    ColumnReorder,
    JobCreate,
    JobOut,
    JobUpdate,
    NoteIn,
    NoteOut,
    NotificationList,
    NotificationOut,
    StageMove,
    UserCreate,
    UserOut,
    UserUpdate,
)

VERSION = "1.0.0"

logger = logging.getLogger(__name__)


# =========================
# App factory (lifespan)
# =========================
def _build_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Inicialização
        configure_logging(settings.LOG_LEVEL)
        db.init_db()
        audit.init_audit()
        if settings.SEED_ON_STARTUP and settings.SEED_PATH.exists():
            try:
                seed_from_file(settings.SEED_PATH)
            except Exception:
                # seed é conveniência de ambiente local; não impede o app de subir
                logger.exception("Seed failed", extra={"ctx": {"path": str(settings.SEED_PATH)}})
        yield
        # Finalização: nada por enquanto

    app = FastAPI(title="Talentos API", version=VERSION, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app


app = _build_app()


@app.exception_handler(TalentosError)
async def talentos_error_handler(request: Request, exc: TalentosError):
    logger.info("Request refused", extra={"ctx": {"path": request.url.path, "status": exc.http_status, "error": exc.message}})
    return JSONResponse(status_code=exc.http_status, content={"detail": exc.message})


# =========================
# Middleware de métricas
# =========================
@app.middleware("http")
async def metrics_and_access_log(request: Request, call_next):
    start = time.perf_counter()
    path = request.url.path
    method = request.method
    status_code = 500
    try:
        response: StarletteResponse = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        dur = time.perf_counter() - start
        try:
            LATENCY.labels(endpoint=path).observe(dur)
            REQUESTS.labels(endpoint=path, method=method, status=str(status_code)).inc()
        except Exception:
            # nunca quebre a requisição por falha de métrica
            pass


# =========================
# Dependências
# =========================
def get_actor(
    x_user_id: Optional[str] = Header(None),
    x_user_email: Optional[str] = Header(None),
    x_user_name: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
    session: Session = Depends(db.get_db),
) -> schema.Actor:
    """Identidade repassada pelo gateway de autenticação."""
    return identity.resolve_actor(session, x_user_id, x_user_email, x_user_name, x_user_role)


def current_user(actor: schema.Actor = Depends(get_actor)) -> schema.Actor:
    return identity.require_user(actor)


# =========================
# Endpoints públicos
# =========================
@app.get("/health")
def health():
    return {"status": "ok", "version": VERSION}


@app.get("/config")
def config():
    """Vocabulários usados pelos formulários do front."""
    return {
        "roles": list(schema.ROLES),
        "userStatuses": list(schema.USER_STATUSES),
        "clientStatuses": list(schema.CLIENT_STATUSES),
        "jobPriorities": list(schema.JOB_PRIORITIES),
        "candidateStatuses": list(schema.CANDIDATE_STATUSES),
        "seniorities": list(schema.SENIORITIES),
        "boards": list(kb.BOARDS),
        "urgentDays": settings.URGENT_DAYS,
    }


@app.get("/metrics")
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


# =========================
# Sessão / navegação
# =========================
@app.get("/me", response_model=UserOut)
def me(actor: schema.Actor = Depends(current_user), session: Session = Depends(db.get_db)):
    return mapping.user_to_dict(users.get_user(session, actor, actor.id))


@app.get("/me/navigation")
def me_navigation(actor: schema.Actor = Depends(current_user)):
    return {"role": actor.role, "pages": identity.visible_pages(actor.role)}


# =========================
# Usuários
# =========================
@app.get("/users", response_model=List[UserOut])
def list_users(
    search: str = "",
    role: Optional[str] = None,
    status: Optional[str] = None,
    actor: schema.Actor = Depends(current_user),
    session: Session = Depends(db.get_db),
):
    return [mapping.user_to_dict(p) for p in users.list_users(session, actor, search, role, status)]


@app.post("/users", response_model=UserOut, status_code=201)
def create_user(payload: UserCreate, actor: schema.Actor = Depends(current_user), session: Session = Depends(db.get_db)):
    return mapping.user_to_dict(users.add_user(session, actor, payload.model_dump(exclude_unset=True)))


@app.get("/users/{user_id}", response_model=UserOut)
def get_user(user_id: str, actor: schema.Actor = Depends(current_user), session: Session = Depends(db.get_db)):
    return mapping.user_to_dict(users.get_user(session, actor, user_id))


@app.patch("/users/{user_id}", response_model=UserOut)
def update_user(
    user_id: str,
    payload: UserUpdate,
    actor: schema.Actor = Depends(current_user),
    session: Session = Depends(db.get_db),
):
    return mapping.user_to_dict(users.update_user(session, actor, user_id, payload.model_dump(exclude_unset=True)))


@app.delete("/users/{user_id}")
def delete_user(user_id: str, actor: schema.Actor = Depends(current_user), session: Session = Depends(db.get_db)):
    users.delete_user(session, actor, user_id)
    return {"deleted": user_id}


# =========================
# Clientes
# =========================
@app.get("/clients", response_model=List[ClientOut])
def list_clients(
    search: str = "",
    status: Optional[str] = None,
    actor: schema.Actor = Depends(current_user),
    session: Session = Depends(db.get_db),
):
    return [mapping.client_to_dict(c, n) for c, n in clients.list_clients(session, actor, search, status)]


@app.post("/clients", response_model=ClientOut, status_code=201)
def create_client(payload: ClientCreate, actor: schema.Actor = Depends(current_user), session: Session = Depends(db.get_db)):
    c = clients.add_client(session, actor, payload.model_dump(exclude_unset=True))
    return mapping.client_to_dict(c, 0)


@app.get("/clients/{client_id}", response_model=ClientOut)
def get_client(client_id: str, actor: schema.Actor = Depends(current_user), session: Session = Depends(db.get_db)):
    c = clients.get_client(session, actor, client_id)
    return mapping.client_to_dict(c, clients.active_jobs_by_company(session).get(c.name, 0))


@app.patch("/clients/{client_id}", response_model=ClientOut)
def update_client(
    client_id: str,
    payload: ClientUpdate,
    actor: schema.Actor = Depends(current_user),
    session: Session = Depends(db.get_db),
):
    c = clients.update_client(session, actor, client_id, payload.model_dump(exclude_unset=True))
    return mapping.client_to_dict(c, clients.active_jobs_by_company(session).get(c.name, 0))


@app.delete("/clients/{client_id}")
def delete_client(client_id: str, actor: schema.Actor = Depends(current_user), session: Session = Depends(db.get_db)):
    clients.delete_client(session, actor, client_id)
    return {"deleted": client_id}


# =========================
# Vagas
# =========================
@app.get("/jobs", response_model=List[JobOut])
def list_jobs(search: str = "", actor: schema.Actor = Depends(current_user), session: Session = Depends(db.get_db)):
    return jobs.serialize(session, jobs.list_jobs(session, actor, search))


@app.get("/jobs/trash", response_model=List[JobOut])
def list_job_trash(search: str = "", actor: schema.Actor = Depends(current_user), session: Session = Depends(db.get_db)):
    return jobs.serialize(session, jobs.list_jobs(session, actor, search, trashed=True))


@app.post("/jobs", response_model=JobOut, status_code=201)
def create_job(payload: JobCreate, actor: schema.Actor = Depends(current_user), session: Session = Depends(db.get_db)):
    job = jobs.add_job(session, actor, payload.model_dump(exclude_unset=True))
    return jobs.serialize(session, [job])[0]


@app.get("/jobs/{job_id}", response_model=JobOut)
def get_job(job_id: str, actor: schema.Actor = Depends(current_user), session: Session = Depends(db.get_db)):
    return jobs.serialize(session, [jobs.get_job(session, actor, job_id)])[0]


@app.patch("/jobs/{job_id}", response_model=JobOut)
def update_job(
    job_id: str,
    payload: JobUpdate,
    actor: schema.Actor = Depends(current_user),
    session: Session = Depends(db.get_db),
):
    job = jobs.update_job(session, actor, job_id, payload.model_dump(exclude_unset=True))
    return jobs.serialize(session, [job])[0]


@app.post("/jobs/{job_id}/stage", response_model=JobOut)
def move_job(
    job_id: str,
    payload: StageMove,
    actor: schema.Actor = Depends(current_user),
    session: Session = Depends(db.get_db),
):
    job = jobs.update_job_stage(session, actor, job_id, payload.stage, payload.index)
    return jobs.serialize(session, [job])[0]


@app.post("/jobs/{job_id}/trash", response_model=JobOut)
def trash_job(job_id: str, actor: schema.Actor = Depends(current_user), session: Session = Depends(db.get_db)):
    return jobs.serialize(session, [jobs.trash_job(session, actor, job_id)])[0]


@app.post("/jobs/{job_id}/restore", response_model=JobOut)
def restore_job(job_id: str, actor: schema.Actor = Depends(current_user), session: Session = Depends(db.get_db)):
    return jobs.serialize(session, [jobs.restore_job(session, actor, job_id)])[0]


@app.delete("/jobs/{job_id}")
def delete_job(job_id: str, actor: schema.Actor = Depends(current_user), session: Session = Depends(db.get_db)):
    jobs.delete_job_permanently(session, actor, job_id)
    return {"deleted": job_id}


@app.get("/jobs/{job_id}/candidates", response_model=List[CandidateOut])
def list_job_candidates(job_id: str, actor: schema.Actor = Depends(current_user), session: Session = Depends(db.get_db)):
    return [mapping.candidate_to_dict(c) for c in candidates.list_for_job(session, actor, job_id)]


# =========================
# Candidatos
# =========================
def _search_candidates(session, actor, trashed, search, job_id, seniority, location, stage, status, skills):
    rows = candidates.search_candidates(
        session, actor,
        search=search, job_id=job_id, seniority=seniority, location=location,
        stage=stage, status=status, skills=skills, trashed=trashed,
    )
    return [mapping.candidate_to_dict(c, with_notes=False) for c in rows]


@app.get("/candidates", response_model=List[CandidateOut])
def list_candidates(
    search: str = "",
    jobId: Optional[str] = None,
    seniority: Optional[str] = None,
    location: Optional[str] = None,
    stage: Optional[str] = None,
    status: Optional[str] = None,
    skills: Optional[List[str]] = Query(None),
    actor: schema.Actor = Depends(current_user),
    session: Session = Depends(db.get_db),
):
    return _search_candidates(session, actor, False, search, jobId, seniority, location, stage, status, skills)


@app.get("/candidates/trash", response_model=List[CandidateOut])
def list_candidate_trash(
    search: str = "",
    jobId: Optional[str] = None,
    actor: schema.Actor = Depends(current_user),
    session: Session = Depends(db.get_db),
):
    return _search_candidates(session, actor, True, search, jobId, None, None, None, None, None)


@app.get("/candidates/facets", response_model=CandidateFacets)
def candidate_facets(actor: schema.Actor = Depends(current_user), session: Session = Depends(db.get_db)):
    return candidates.facets(session, actor)


@app.post("/candidates", response_model=CandidateOut, status_code=201)
def create_candidate(
    payload: CandidateCreate,
    actor: schema.Actor = Depends(current_user),
    session: Session = Depends(db.get_db),
):
    data = payload.model_dump(exclude_unset=True)
    note = data.pop("note", None)
    return mapping.candidate_to_dict(candidates.add_candidate(session, actor, data, note=note))


@app.get("/candidates/{candidate_id}", response_model=CandidateOut)
def get_candidate(candidate_id: str, actor: schema.Actor = Depends(current_user), session: Session = Depends(db.get_db)):
    return mapping.candidate_to_dict(candidates.get_candidate(session, actor, candidate_id))


@app.patch("/candidates/{candidate_id}", response_model=CandidateOut)
def update_candidate(
    candidate_id: str,
    payload: CandidateUpdate,
    actor: schema.Actor = Depends(current_user),
    session: Session = Depends(db.get_db),
):
    c = candidates.update_candidate(session, actor, candidate_id, payload.model_dump(exclude_unset=True))
    return mapping.candidate_to_dict(c)


@app.post("/candidates/{candidate_id}/stage", response_model=CandidateOut)
def move_candidate(
    candidate_id: str,
    payload: StageMove,
    actor: schema.Actor = Depends(current_user),
    session: Session = Depends(db.get_db),
):
    candidates.update_candidate_stage(session, actor, candidate_id, payload.stage, payload.index)
    return mapping.candidate_to_dict(candidates.get_candidate(session, actor, candidate_id))


@app.post("/candidates/{candidate_id}/trash", response_model=CandidateOut)
def trash_candidate(candidate_id: str, actor: schema.Actor = Depends(current_user), session: Session = Depends(db.get_db)):
    return mapping.candidate_to_dict(candidates.trash_candidate(session, actor, candidate_id))


@app.post("/candidates/{candidate_id}/restore", response_model=CandidateOut)
def restore_candidate(candidate_id: str, actor: schema.Actor = Depends(current_user), session: Session = Depends(db.get_db)):
    return mapping.candidate_to_dict(candidates.restore_candidate(session, actor, candidate_id))


@app.delete("/candidates/{candidate_id}")
def delete_candidate(candidate_id: str, actor: schema.Actor = Depends(current_user), session: Session = Depends(db.get_db)):
    candidates.delete_candidate_permanently(session, actor, candidate_id)
    return {"deleted": candidate_id}


@app.get("/candidates/{candidate_id}/notes", response_model=List[NoteOut])
def list_notes(candidate_id: str, actor: schema.Actor = Depends(current_user), session: Session = Depends(db.get_db)):
    return [mapping.note_to_dict(n) for n in candidates.list_notes(session, actor, candidate_id)]


@app.post("/candidates/{candidate_id}/notes", response_model=NoteOut, status_code=201)
def add_note(
    candidate_id: str,
    payload: NoteIn,
    actor: schema.Actor = Depends(current_user),
    session: Session = Depends(db.get_db),
):
    return mapping.note_to_dict(candidates.add_note(session, actor, candidate_id, payload.content))


# =========================
# Kanban
# =========================
@app.get("/boards/{kind}")
def get_board(
    kind: str,
    search: str = "",
    jobId: Optional[str] = None,
    status: Optional[str] = None,
    actor: schema.Actor = Depends(current_user),
    session: Session = Depends(db.get_db),
):
    return boards.get_board(session, actor, kind, search=search, job_id=jobId, status=status)


@app.get("/boards/{kind}/columns", response_model=List[ColumnOut])
def list_columns(kind: str, actor: schema.Actor = Depends(current_user), session: Session = Depends(db.get_db)):
    return [mapping.column_to_dict(c) for c in boards.list_columns(session, actor, kind)]


@app.post("/boards/{kind}/columns", response_model=List[ColumnOut], status_code=201)
def add_column(
    kind: str,
    payload: ColumnCreate,
    actor: schema.Actor = Depends(current_user),
    session: Session = Depends(db.get_db),
):
    return [mapping.column_to_dict(c) for c in boards.add_column(session, actor, kind, payload.title, payload.color or "")]


@app.post("/boards/{kind}/columns/reorder", response_model=List[ColumnOut])
def reorder_columns(
    kind: str,
    payload: ColumnReorder,
    actor: schema.Actor = Depends(current_user),
    session: Session = Depends(db.get_db),
):
    cols = boards.reorder_column(session, actor, kind, payload.fromIndex, payload.toIndex)
    return [mapping.column_to_dict(c) for c in cols]


@app.patch("/boards/{kind}/columns/{column_id}", response_model=List[ColumnOut])
def rename_column(
    kind: str,
    column_id: str,
    payload: ColumnRename,
    actor: schema.Actor = Depends(current_user),
    session: Session = Depends(db.get_db),
):
    return [mapping.column_to_dict(c) for c in boards.rename_column(session, actor, kind, column_id, payload.title)]


@app.delete("/boards/{kind}/columns/{column_id}", response_model=List[ColumnOut])
def remove_column(
    kind: str,
    column_id: str,
    actor: schema.Actor = Depends(current_user),
    session: Session = Depends(db.get_db),
):
    return [mapping.column_to_dict(c) for c in boards.remove_column(session, actor, kind, column_id)]


@app.post("/boards/{kind}/moves")
def move_card(
    kind: str,
    payload: CardMove,
    actor: schema.Actor = Depends(current_user),
    session: Session = Depends(db.get_db),
):
    return boards.move_card(session, actor, kind, payload.id, payload.stage, payload.index)


# =========================
# Notificações
# =========================
@app.get("/notifications", response_model=NotificationList)
def list_notifications(actor: schema.Actor = Depends(current_user), session: Session = Depends(db.get_db)):
    rows, unread = notifications.list_notifications(session, actor)
    return {"items": [mapping.notification_to_dict(n) for n in rows], "unread": unread}


@app.post("/notifications/{notification_id}/read", response_model=NotificationOut)
def mark_notification_read(
    notification_id: str,
    actor: schema.Actor = Depends(current_user),
    session: Session = Depends(db.get_db),
):
    return mapping.notification_to_dict(notifications.mark_read(session, actor, notification_id))


@app.delete("/notifications")
def clear_notifications(actor: schema.Actor = Depends(current_user), session: Session = Depends(db.get_db)):
    return {"deleted": notifications.clear(session, actor)}


# =========================
# Dashboard / relatórios
# =========================
@app.get("/dashboard")
def dashboard(actor: schema.Actor = Depends(current_user), session: Session = Depends(db.get_db)):
    return reports.dashboard(session, actor)


@app.get("/reports")
def get_reports(actor: schema.Actor = Depends(current_user), session: Session = Depends(db.get_db)):
    return reports.report(session, actor)


@app.get("/reports/jobs.csv")
def reports_csv(actor: schema.Actor = Depends(current_user), session: Session = Depends(db.get_db)):
    return Response(
        reports.report_csv(session, actor),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="relatorio_vagas.csv"'},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("talentos.api.main:app", host="0.0.0.0", port=8000, reload=False)
