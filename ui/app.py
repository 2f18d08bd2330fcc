# ui/app.py
import pandas as pd
import requests
import streamlit as st

from talentos.config.settings import API_URL as API

st.set_page_config(page_title="Talentos · Recrutamento", layout="wide")

# ---------------- Sidebar: identidade ----------------
# Em produção os headers vêm do gateway de autenticação; aqui são digitados
with st.sidebar:
    st.header("Sessão")
    user_id = st.text_input("Id do usuário", st.session_state.get("user_id", "u3"))
    st.session_state["user_id"] = user_id


def _headers():
    return {"X-User-Id": st.session_state.get("user_id") or ""}


def _s(v):
    import math
    if v is None: return ""
    if isinstance(v, float) and math.isnan(v): return ""
    return str(v)


def api(method: str, path: str, **kwargs):
    """Chama a API; erros de domínio viram mensagem na tela e retorno None."""
    try:
        r = requests.request(method, f"{API}{path}", headers=_headers(), timeout=30, **kwargs)
    except requests.RequestException as e:
        st.error(f"API indisponível: {e}")
        return None
    if r.status_code >= 400:
        try:
            detail = r.json().get("detail")
        except ValueError:
            detail = r.text
        st.error(f"Erro {r.status_code}: {detail}")
        return None
    if r.headers.get("content-type", "").startswith("application/json"):
        return r.json()
    return r.content


me = api("GET", "/me") if user_id else None
if not me:
    st.title("Talentos")
    st.info("Informe um id de usuário válido na barra lateral.")
    st.stop()

nav = api("GET", "/me/navigation") or {"pages": []}
pages = {p["label"]: p["id"] for p in nav["pages"]}

with st.sidebar:
    st.caption(f"{me['name']} · {me['role']}")
    page = pages[st.radio("Menu", list(pages.keys()))]

    notes = api("GET", "/notifications") or {"items": [], "unread": 0}
    with st.expander(f"Notificações ({notes['unread']})"):
        for n in notes["items"][:10]:
            st.write(f"{'' if n['read'] else '• '}**{n['title']}** {n['message']}")
        if notes["items"] and st.button("Limpar notificações"):
            api("DELETE", "/notifications")
            st.rerun()


# ---------------- Páginas ----------------
def page_dashboard():
    st.title("Dashboard Analítico")
    d = api("GET", "/dashboard")
    if not d:
        return
    c = st.columns(5)
    c[0].metric("Vagas", d["totalJobs"])
    c[1].metric("Ativas", d["activeJobs"])
    c[2].metric("Críticas", d["criticalJobs"])
    c[3].metric("Candidatos", d["totalCandidates"])
    c[4].metric("Candidatos/vaga", d["candidatesPerJob"])

    left, right = st.columns(2)
    with left:
        st.subheader("Prazos urgentes")
        for j in d["urgentJobs"]:
            st.write(f"**{j['title']}** · {j['company']} · {j['daysRemaining']} dias")
    with right:
        st.subheader("Distribuição por etapa")
        st.bar_chart(pd.Series(d["stageDistribution"]))

    st.subheader("Vagas recentes")
    st.dataframe(pd.DataFrame(d["recentJobs"], columns=["title", "company", "stage", "progress"]), use_container_width=True)


def _board(kind: str, job_id=None):
    params = {"jobId": job_id} if job_id else {}
    b = api("GET", f"/boards/{kind}", params=params)
    if not b:
        return
    stage_ids = [c["id"] for c in b["columns"]]
    cols = st.columns(len(b["columns"]))
    for col, meta in zip(cols, b["columns"]):
        with col:
            st.markdown(f"**{meta['title']}** ({meta['count']})")
            for card in b["cards"].get(meta["id"], []):
                label = card.get("title") or card.get("name")
                with st.container(border=True):
                    st.write(label)
                    target = st.selectbox(
                        "Mover para", stage_ids, index=stage_ids.index(meta["id"]),
                        key=f"mv-{kind}-{card['id']}", label_visibility="collapsed",
                    )
                    if target != meta["id"]:
                        api("POST", f"/boards/{kind}/moves", json={"id": card["id"], "stage": target})
                        st.rerun()
    if b["unassigned"]:
        st.warning(f"{len(b['unassigned'])} card(s) em etapa sem coluna.")

    with st.expander("Colunas"):
        c1, c2 = st.columns(2)
        with c1:
            cid = st.selectbox("Coluna", stage_ids, key=f"ren-{kind}")
            title = st.text_input("Novo título", key=f"title-{kind}")
            if st.button("Renomear", key=f"btn-ren-{kind}"):
                api("PATCH", f"/boards/{kind}/columns/{cid}", json={"title": title})
                st.rerun()
        with c2:
            new = st.text_input("Nova coluna", key=f"new-{kind}")
            if st.button("Adicionar", key=f"btn-add-{kind}"):
                api("POST", f"/boards/{kind}/columns", json={"title": new})
                st.rerun()


def _job_candidates(job_id: str):
    """Cadastro de candidato e notas, como na tela de detalhes da vaga."""
    vocab = api("GET", "/config") or {"seniorities": []}
    with st.expander("Novo candidato"):
        with st.form(f"new-cand-{job_id}"):
            name = st.text_input("Nome")
            email = st.text_input("E-mail")
            skills = st.text_input("Habilidades (separadas por vírgula)")
            location = st.text_input("Local")
            seniority = st.selectbox("Senioridade", vocab["seniorities"])
            note = st.text_area("Observação inicial")
            if st.form_submit_button("Cadastrar"):
                api("POST", "/candidates", json={"jobId": job_id, "name": name, "email": email, "skills": skills,
                                                 "location": location, "seniority": seniority, "note": note})
                st.rerun()

    rows = api("GET", f"/jobs/{job_id}/candidates") or []
    if not rows:
        return
    st.subheader("Notas")
    names = {f"{c['name']} · {c['stage']}": c["id"] for c in rows}
    cand_id = names[st.selectbox("Candidato", list(names.keys()), key=f"notes-{job_id}")]
    for n in api("GET", f"/candidates/{cand_id}/notes") or []:
        st.write(f"**{_s(n.get('authorName'))}** · {_s(n.get('createdAt'))[:16]}")
        st.caption(n["content"])
    content = st.text_area("Nova nota", key=f"note-{cand_id}")
    if st.button("Adicionar nota", key=f"btn-note-{cand_id}"):
        api("POST", f"/candidates/{cand_id}/notes", json={"content": content})
        st.rerun()


def page_pipeline():
    st.title("Pipeline de Vagas")
    _board("jobs")

    jobs = api("GET", "/jobs") or []
    if jobs:
        st.subheader("Candidatos da vaga")
        titles = {f"{j['title']} · {j['company']}": j["id"] for j in jobs}
        job_id = titles[st.selectbox("Vaga", list(titles.keys()))]
        _board("candidates", job_id)
        _job_candidates(job_id)

    with st.expander("Nova vaga"):
        with st.form("new-job"):
            title = st.text_input("Título")
            company = st.selectbox("Empresa", [c["name"] for c in (api("GET", "/clients") or [])])
            reqs = st.text_input("Requisitos (separados por vírgula)")
            days = st.number_input("Dias restantes", min_value=0, value=30)
            if st.form_submit_button("Publicar"):
                api("POST", "/jobs", json={"title": title, "company": company, "requirements": reqs, "daysRemaining": int(days)})
                st.rerun()


def page_candidates():
    st.title("Banco de Talentos")
    facets = api("GET", "/candidates/facets") or {"skills": [], "locations": []}
    c1, c2, c3 = st.columns(3)
    search = c1.text_input("Buscar")
    skills = c2.multiselect("Habilidades", facets["skills"])
    location = c3.selectbox("Local", [""] + facets["locations"])
    rows = api("GET", "/candidates", params={"search": search, "skills": skills, "location": location or None}) or []
    df = pd.DataFrame(rows, columns=["name", "email", "currentRole", "seniority", "location", "stage", "status"])
    st.dataframe(df, use_container_width=True)


def page_clients():
    st.title("Clientes")
    rows = api("GET", "/clients") or []
    st.dataframe(pd.DataFrame(rows, columns=["name", "industry", "contactName", "status", "activeJobs"]), use_container_width=True)


def page_reports():
    st.title("Relatórios de Performance")
    r = api("GET", "/reports")
    if not r:
        return
    c = st.columns(4)
    c[0].metric("Vagas ativas", r["activeJobs"])
    c[1].metric("Candidatos", r["totalCandidates"])
    c[2].metric("Em entrevista", r["inInterview"])
    c[3].metric("Taxa de conversão", f"{r['conversionRate']}%")
    df = pd.DataFrame([{"title": j["title"], "company": j["company"], **j["stats"]} for j in r["jobs"]])
    st.dataframe(df, use_container_width=True)
    csv = api("GET", "/reports/jobs.csv")
    if csv:
        st.download_button("Exportar CSV", csv, file_name="relatorio_vagas.csv", mime="text/csv")


def page_settings():
    st.title("Configurações")
    with st.form("profile"):
        name = st.text_input("Nome", _s(me.get("name")))
        bio = st.text_area("Bio", _s(me.get("bio")))
        prefs = me.get("preferences") or {}
        notif = st.checkbox("Receber notificações", value=prefs.get("notifications", True))
        if st.form_submit_button("Salvar"):
            api("PATCH", f"/users/{me['id']}", json={"name": name, "bio": bio, "preferences": {**prefs, "notifications": notif}})
            st.rerun()


def page_users():
    st.title("Usuários")
    rows = api("GET", "/users") or []
    st.dataframe(pd.DataFrame(rows, columns=["id", "name", "email", "role", "status"]), use_container_width=True)


def page_trash(kind: str):
    st.title("Lixeira de Vagas" if kind == "jobs" else "Lixeira de Candidatos")
    for item in api("GET", f"/{kind}/trash") or []:
        c1, c2, c3 = st.columns([4, 1, 1])
        c1.write(item.get("title") or item.get("name"))
        if c2.button("Restaurar", key=f"rs-{kind}-{item['id']}"):
            api("POST", f"/{kind}/{item['id']}/restore")
            st.rerun()
        if me["role"] == "Admin" and c3.button("Excluir", key=f"rm-{kind}-{item['id']}"):
            api("DELETE", f"/{kind}/{item['id']}")
            st.rerun()


PAGES = {
    "dashboard": page_dashboard,
    "pipeline": page_pipeline,
    "candidates": page_candidates,
    "clients": page_clients,
    "reports": page_reports,
    "settings": page_settings,
    "users": page_users,
    "client-management": page_clients,
    "job-trash": lambda: page_trash("jobs"),
    "candidate-trash": lambda: page_trash("candidates"),
}

PAGES[page]()
