import csv

import pytest

from talentos.data import db
from talentos.errors import NotFoundError, PermissionDeniedError, ValidationError
from talentos.services import candidates, jobs, notifications


@pytest.fixture()
def job(session, people):
    return jobs.add_job(session, people["admin"], {"title": "Dev Fullstack", "company": "Nubank Brasil",
                                                   "recruiter": {"id": "u1"}})


def _add(session, actor, job, **kw):
    data = {"jobId": job.id, "name": "David Oliveira"}
    data.update(kw)
    return candidates.add_candidate(session, actor, data)


def test_add_candidate_defaults_and_note(session, people, job):
    c = candidates.add_candidate(session, people["ana"], {"jobId": job.id, "name": "David Oliveira",
                                                          "skills": "React, AWS"}, note="Forte em React")
    assert (c.candidate_status, c.candidate_stage, c.source, c.seniority) == ("Triagem", "Triagem", "Manual", "Pleno")
    assert c.skills == ["React", "AWS"]
    assert [n.content for n in candidates.list_notes(session, people["ana"], c.id)] == ["Forte em React"]
    assert c.notes[0].author_name == "Ana Silva"
    rows, _ = notifications.list_notifications(session, people["ana"])
    assert any(n.message == "David Oliveira foi cadastrado com sucesso." for n in rows)


def test_add_candidate_requires_open_visible_job(session, people, job):
    with pytest.raises(ValidationError):
        candidates.add_candidate(session, people["ana"], {"name": "Sem vaga"})
    with pytest.raises(NotFoundError):
        _add(session, people["rick"], job)
    jobs.trash_job(session, people["ana"], job.id)
    with pytest.raises(ValidationError):
        _add(session, people["ana"], job)


def test_add_candidate_validates_vocabulary(session, people, job):
    with pytest.raises(ValidationError):
        _add(session, people["ana"], job, seniority="Master")
    with pytest.raises(ValidationError):
        _add(session, people["ana"], job, stage="Contratado")
    c = _add(session, people["ana"], job, stage="Fase de testes")
    assert c.candidate_stage == "Testes"


def test_update_candidate_partial(session, people, job):
    c = _add(session, people["ana"], job, location="São Paulo, SP")
    c = candidates.update_candidate(session, people["ana"], c.id, {"currentRole": "Tech Lead"})
    assert c.current_job_role == "Tech Lead"
    assert c.location == "São Paulo, SP"
    with pytest.raises(NotFoundError):
        candidates.update_candidate(session, people["rick"], c.id, {"name": "X"})


def test_move_to_rejected_sets_status(session, people, job):
    c = _add(session, people["ana"], job)
    assert candidates.update_candidate_stage(session, people["ana"], c.id, "Reprovado") is True
    c = candidates.get_candidate(session, people["ana"], c.id)
    assert c.candidate_stage == "Reprovado"
    assert c.candidate_status == "Rejeitado"
    assert candidates.update_candidate_stage(session, people["ana"], c.id, "Reprovado") is False


def test_move_with_index_renumbers(session, people, job):
    a = _add(session, people["ana"], job, name="A")
    b = _add(session, people["ana"], job, name="B")
    c = _add(session, people["ana"], job, name="C", stage="Testes")
    candidates.update_candidate_stage(session, people["ana"], c.id, "Triagem", index=1)
    column = sorted((x for x in candidates.list_for_job(session, people["ana"], job.id)
                     if x.candidate_stage == "Triagem"), key=lambda x: x.position)
    assert [x.name for x in column] == ["A", "C", "B"]
    assert [x.position for x in column] == [0, 1, 2]
    assert a.id != b.id


def test_search_pool(session, people, job):
    other = jobs.add_job(session, people["admin"], {"title": "Vendas", "company": "Salesforce",
                                                    "recruiter": {"id": "u4"}})
    _add(session, people["ana"], job, name="David", skills=["React", "Node.js"], location="São Paulo, SP",
         seniority="Sênior")
    _add(session, people["ana"], job, name="Bruno", skills=["React"], location="Curitiba, PR")
    _add(session, people["rick"], other, name="Felipe", skills=["CRM"], currentRole="Sales Executive")

    # banco de talentos enxerga candidatos de qualquer vaga
    assert len(candidates.search_candidates(session, people["ana"])) == 3
    assert [c.name for c in candidates.search_candidates(session, people["ana"], skills=["react", "NODE.JS"])] == ["David"]
    assert [c.name for c in candidates.search_candidates(session, people["ana"], search="sales")] == ["Felipe"]
    assert [c.name for c in candidates.search_candidates(session, people["ana"], seniority="Sênior")] == ["David"]
    assert len(candidates.search_candidates(session, people["ana"], job_id=job.id)) == 2

    f = candidates.facets(session, people["ana"])
    assert f["skills"] == ["CRM", "Node.js", "React"]
    assert f["locations"] == ["Curitiba, PR", "São Paulo, SP"]


def test_trash_restore_delete(session, people, job):
    c = _add(session, people["ana"], job)
    candidates.trash_candidate(session, people["ana"], c.id)
    assert candidates.search_candidates(session, people["ana"]) == []
    assert [x.id for x in candidates.search_candidates(session, people["ana"], trashed=True)] == [c.id]
    with pytest.raises(ValidationError):
        candidates.update_candidate_stage(session, people["ana"], c.id, "Testes")

    candidates.restore_candidate(session, people["ana"], c.id)
    assert candidates.get_candidate(session, people["ana"], c.id).trashed is False

    candidates.add_note(session, people["ana"], c.id, "Entrevista marcada")
    with pytest.raises(PermissionDeniedError):
        candidates.delete_candidate_permanently(session, people["ana"], c.id)
    candidates.delete_candidate_permanently(session, people["admin"], c.id)
    assert session.get(db.Candidate, c.id) is None
    assert session.query(db.CandidateNote).count() == 0


def test_blank_note_rejected(session, people, job):
    c = _add(session, people["ana"], job)
    with pytest.raises(ValidationError):
        candidates.add_note(session, people["ana"], c.id, "   ")


def test_update_candidate_rejects_nulls(session, people, job):
    c = _add(session, people["ana"], job)
    for payload in ({"status": None}, {"stage": None}, {"name": None}, {"jobId": None}):
        with pytest.raises(ValidationError):
            candidates.update_candidate(session, people["ana"], c.id, payload)
    session.expire_all()
    c = candidates.get_candidate(session, people["ana"], c.id)
    assert (c.name, c.candidate_status, c.candidate_stage) == ("David Oliveira", "Triagem", "Triagem")


def test_patch_stage_behaves_like_kanban_move(session, people, job, isolated_env):
    a = _add(session, people["ana"], job, name="A", stage="Testes")
    b = _add(session, people["ana"], job, name="B")
    c = candidates.update_candidate(session, people["ana"], a.id, {"stage": "Reprovado", "location": "Recife, PE"})
    assert (c.candidate_stage, c.candidate_status, c.location) == ("Reprovado", "Rejeitado", "Recife, PE")

    c = candidates.update_candidate(session, people["ana"], a.id, {"stage": "Triagem"})
    assert c.position == 1  # fim da coluna, depois de B
    assert b.position == 0

    trail = list(csv.reader((isolated_env["mon_dir"] / "pipeline_moves.csv").open(encoding="utf-8")))
    assert [row[3:5] for row in trail[1:]] == [["Testes", "Reprovado"], ["Reprovado", "Triagem"]]
