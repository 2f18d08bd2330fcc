from talentos.pipeline.stages import normalize_candidate_stage, normalize_job_stage, status_for_stage
from talentos.utils.text import initials, matches, normalize_text, split_list


def test_candidate_stage_aliases():
    assert normalize_candidate_stage("Fase de testes") == "Testes"
    assert normalize_candidate_stage("Primeira entrevista") == "Primeira Entrevista"
    assert normalize_candidate_stage("Entrevista técnica") == "Primeira Entrevista"
    assert normalize_candidate_stage("entrevista GESTOR") == "Entrevista Gestor"
    assert normalize_candidate_stage("Aprovado") == "Entregue"
    assert normalize_candidate_stage("Reprovado Gestor") == "Reprovado"
    assert normalize_candidate_stage("desconhecida") is None
    assert normalize_candidate_stage(None) is None


def test_custom_stage_is_accepted():
    assert normalize_candidate_stage("proposta", extra=["Proposta"]) == "Proposta"


def test_job_stage_aliases():
    assert normalize_job_stage("Vaga fechada") == "Entregue"
    assert normalize_job_stage("substituicao") == "Substituição"
    assert normalize_job_stage("Em Triagem") == "Em Triagem"


def test_status_for_stage():
    assert status_for_stage("Reprovado") == "Rejeitado"
    assert status_for_stage("Testes") is None


def test_normalize_text():
    assert normalize_text("Olá, Mundo! C++ #dev") == "ola mundo c++ #dev"
    assert normalize_text("ana.silva@agency.com") == "ana.silva@agency.com"
    assert normalize_text(None) == ""


def test_matches_is_accent_insensitive():
    assert matches("sao paulo", "São Paulo, SP")
    assert matches("", None)
    assert not matches("rio", "São Paulo", None)


def test_initials_and_split_list():
    assert initials("David  Oliveira Souza") == "DO"
    assert initials("") == ""
    assert split_list("React, Node.js , ,AWS") == ["React", "Node.js", "AWS"]
    assert split_list(["SQL", None, " "]) == ["SQL"]
    assert split_list(None) == []
