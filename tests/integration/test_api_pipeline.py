import csv
import io

ADMIN = {"X-User-Id": "adm"}
ANA = {"X-User-Id": "u1"}
RICK = {"X-User-Id": "u4"}


def _create_job(client, **kw):
    payload = {"title": "Desenvolvedor Fullstack", "company": "Nubank Brasil", "recruiterId": "u1",
               "requirements": "React, Node.js", "daysRemaining": 4}
    payload.update(kw)
    r = client.post("/jobs", json=payload, headers=ADMIN)
    assert r.status_code == 201, r.text
    return r.json()


def test_job_lifecycle(client, people):
    job = _create_job(client)
    assert job["stage"] == "Vagas Abertas"
    assert job["requirements"] == ["React", "Node.js"]
    assert job["recruiter"]["name"] == "Ana Silva"
    assert job["candidatesCount"] == 0

    assert [j["id"] for j in client.get("/jobs", headers=ANA).json()] == [job["id"]]
    assert client.get("/jobs", headers=RICK).json() == []
    assert client.get(f"/jobs/{job['id']}", headers=RICK).status_code == 404

    r = client.patch(f"/jobs/{job['id']}", json={"priority": "Crítico", "salaryMin": 8000}, headers=ANA)
    assert r.status_code == 200
    assert r.json()["priority"] == "Crítico"
    r = client.patch(f"/jobs/{job['id']}", json={"salaryMax": 5000}, headers=ANA)
    assert r.status_code == 422

    r = client.post(f"/jobs/{job['id']}/stage", json={"stage": "Em Triagem"}, headers=ANA)
    assert r.status_code == 200 and r.json()["stage"] == "Em Triagem"
    assert client.post(f"/jobs/{job['id']}/stage", json={"stage": "Nenhuma"}, headers=ANA).status_code == 422

    assert client.post(f"/jobs/{job['id']}/trash", headers=ANA).json()["trashed"] is True
    assert [j["id"] for j in client.get("/jobs/trash", headers=ADMIN).json()] == [job["id"]]
    assert client.post(f"/jobs/{job['id']}/restore", headers=ADMIN).json()["trashed"] is False
    assert client.delete(f"/jobs/{job['id']}", headers=ANA).status_code == 403
    assert client.delete(f"/jobs/{job['id']}", headers=ADMIN).status_code == 200
    assert client.get(f"/jobs/{job['id']}", headers=ADMIN).status_code == 404


def test_candidate_lifecycle(client, people):
    job = _create_job(client)
    r = client.post("/candidates", json={"jobId": job["id"], "name": "David Oliveira", "skills": ["React", "AWS"],
                                         "location": "São Paulo, SP", "note": "Forte em React"}, headers=ANA)
    assert r.status_code == 201, r.text
    cand = r.json()
    assert cand["initials"] == "DO"
    assert cand["stage"] == "Triagem" and cand["badgeText"] == "Triagem"
    assert cand["notes"][0]["authorName"] == "Ana Silva"

    assert client.get(f"/jobs/{job['id']}", headers=ANA).json()["candidatesCount"] == 1

    r = client.post(f"/candidates/{cand['id']}/stage", json={"stage": "Fase de testes"}, headers=ANA)
    assert r.json()["stage"] == "Testes"
    r = client.post(f"/candidates/{cand['id']}/notes", json={"content": "Teste entregue"}, headers=ANA)
    assert r.status_code == 201
    assert len(client.get(f"/candidates/{cand['id']}/notes", headers=ANA).json()) == 2
    assert client.post(f"/candidates/{cand['id']}/notes", json={"content": " "}, headers=ANA).status_code == 422

    # banco de talentos: qualquer usuário enxerga
    found = client.get("/candidates", params={"search": "sao paulo"}, headers=RICK).json()
    assert found == []  # busca livre não olha localização
    found = client.get("/candidates", params={"location": "São Paulo, SP", "skills": ["aws"]}, headers=RICK).json()
    assert [c["id"] for c in found] == [cand["id"]]
    assert client.get("/candidates/facets", headers=RICK).json()["skills"] == ["AWS", "React"]
    assert client.patch(f"/candidates/{cand['id']}", json={"name": "X"}, headers=RICK).status_code == 404

    assert client.post(f"/candidates/{cand['id']}/trash", headers=ANA).status_code == 200
    assert [c["id"] for c in client.get("/candidates/trash", headers=ANA).json()] == [cand["id"]]
    assert client.post(f"/candidates/{cand['id']}/restore", headers=ANA).json()["trashed"] is False

    assert client.delete(f"/jobs/{job['id']}", headers=ADMIN).status_code == 409
    assert client.delete(f"/candidates/{cand['id']}", headers=ANA).status_code == 403
    assert client.delete(f"/candidates/{cand['id']}", headers=ADMIN).status_code == 200


def test_boards_and_moves(client, people, isolated_env):
    a = _create_job(client, title="A")
    b = _create_job(client, title="B")

    r = client.post("/boards/jobs/moves", json={"id": b["id"], "stage": "Vagas Abertas", "index": 0}, headers=ANA)
    assert r.status_code == 200
    board = client.get("/boards/jobs", headers=ANA).json()
    assert [j["title"] for j in board["cards"]["Vagas Abertas"]] == ["B", "A"]
    assert board["columns"][0] == {"id": "Vagas Abertas", "title": "Vagas Abertas", "color": "bg-blue-400",
                                   "count": 2, "custom": False}

    client.post("/boards/jobs/moves", json={"id": a["id"], "stage": "Entregue"}, headers=ANA)
    trail = list(csv.reader((isolated_env["mon_dir"] / "pipeline_moves.csv").open(encoding="utf-8")))
    assert trail[-1][1:] == ["jobs", a["id"], "Vagas Abertas", "Entregue", "u1"]

    r = client.patch("/boards/jobs/columns/Entregue", json={"title": "Fechadas"}, headers=ANA)
    assert r.status_code == 200
    assert [c["title"] for c in r.json()][6] == "Fechadas"
    r = client.post("/boards/jobs/columns/reorder", json={"fromIndex": 6, "toIndex": 0}, headers=ANA)
    assert r.json()[0]["id"] == "Entregue"
    assert client.post("/boards/jobs/columns", json={"title": "Stand-by"}, headers=ANA).status_code == 403
    r = client.post("/boards/jobs/columns", json={"title": "Stand-by"}, headers=ADMIN)
    assert r.status_code == 201 and r.json()[-1]["custom"] is True
    assert client.delete("/boards/jobs/columns/Stand-by", headers=ADMIN).status_code == 200
    assert client.delete("/boards/jobs/columns/Entregue", headers=ADMIN).status_code == 422

    assert client.get("/boards/candidates", headers=ANA).status_code == 422
    assert client.get("/boards/clients", headers=ANA).status_code == 404
    assert client.get("/boards/candidates", params={"jobId": a["id"]}, headers=ANA).status_code == 200


def test_clients_routes(client, people):
    r = client.post("/clients", json={"name": "Salesforce", "industry": "SaaS / CRM"}, headers=ANA)
    assert r.status_code == 201
    c = r.json()
    assert c["logo"] == "S" and c["status"] == "Prospect" and c["activeJobs"] == 0

    _create_job(client, company="Salesforce")
    assert client.get("/clients", params={"search": "crm"}, headers=ANA).json()[0]["activeJobs"] == 1
    assert client.patch(f"/clients/{c['id']}", json={"status": "Ativo"}, headers=ANA).json()["status"] == "Ativo"
    assert client.delete(f"/clients/{c['id']}", headers=ANA).status_code == 403
    assert client.delete(f"/clients/{c['id']}", headers=ADMIN).status_code == 409


def test_dashboard_and_reports(client, people):
    job = _create_job(client)
    client.post("/candidates", json={"jobId": job["id"], "name": "Ana Paula", "stage": "Entregue"}, headers=ANA)
    client.post("/candidates", json={"jobId": job["id"], "name": "Bruno"}, headers=ANA)

    dash = client.get("/dashboard", headers=ANA).json()
    assert dash["totalJobs"] == 1 and dash["totalCandidates"] == 2
    assert dash["urgentJobs"][0]["id"] == job["id"]

    rep = client.get("/reports", headers=ANA).json()
    assert rep["hired"] == 1 and rep["conversionRate"] == 50.0
    assert rep["jobs"][0]["stats"]["screening"] == 1

    r = client.get("/reports/jobs.csv", headers=ANA)
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    rows = list(csv.DictReader(io.StringIO(r.text)))
    assert rows[0]["hired"] == "1"


def test_null_and_malformed_payloads_are_422(client, people):
    job = _create_job(client)
    assert client.patch(f"/jobs/{job['id']}", json={"title": None}, headers=ANA).status_code == 422
    assert client.patch(f"/jobs/{job['id']}", json={"company": None}, headers=ANA).status_code == 422
    assert client.get(f"/jobs/{job['id']}", headers=ANA).json()["title"] == "Desenvolvedor Fullstack"

    r = client.post("/jobs", json={"title": "QA", "company": "Nubank Brasil", "deadline": "31/12/2025"}, headers=ANA)
    assert r.status_code == 422
    r = client.post("/jobs", json={"title": "QA", "company": "Nubank Brasil", "deadline": "2025-12-31"}, headers=ANA)
    assert r.status_code == 201 and r.json()["deadline"] == "2025-12-31"

    c = client.post("/clients", json={"name": "Salesforce"}, headers=ANA).json()
    assert client.patch(f"/clients/{c['id']}", json={"status": None}, headers=ANA).status_code == 422
    assert client.patch("/users/u4", json={"role": None}, headers=ADMIN).status_code == 422
    assert client.patch("/users/u4", json={"status": None}, headers=ADMIN).status_code == 422


def test_recruiter_board_index_and_patch_stage(client, people, isolated_env):
    _create_job(client, title="OTHER", recruiterId="adm")
    _create_job(client, title="MINE")
    new = _create_job(client, title="NEW")

    r = client.post("/boards/jobs/moves", json={"id": new["id"], "stage": "Vagas Abertas", "index": 1}, headers=ANA)
    assert r.status_code == 200
    board = client.get("/boards/jobs", headers=ANA).json()
    assert [j["title"] for j in board["cards"]["Vagas Abertas"]] == ["MINE", "NEW"]

    r = client.patch(f"/jobs/{new['id']}", json={"stage": "Em Triagem"}, headers=ANA)
    assert r.status_code == 200 and r.json()["stage"] == "Em Triagem"
    titles = [n["title"] for n in client.get("/notifications", headers=ANA).json()["items"]]
    assert "Atualização de Pipeline" in titles
    trail = list(csv.reader((isolated_env["mon_dir"] / "pipeline_moves.csv").open(encoding="utf-8")))
    assert trail[-1][1:] == ["jobs", new["id"], "Vagas Abertas", "Em Triagem", "u1"]
