from types import SimpleNamespace

import pytest

from talentos.errors import NotFoundError, ValidationError
from talentos.pipeline import board as kb


def _card(id_, stage, position=0):
    return SimpleNamespace(id=id_, stage=stage, position=position)


def _stage(c):
    return c.stage


def test_default_columns_are_fresh_copies():
    a = kb.default_columns("jobs")
    a[0].title = "Mudou"
    assert kb.default_columns("jobs")[0].title == "Vagas Abertas"
    assert [c.id for c in kb.default_columns("candidates")][1] == "Testes"
    assert kb.default_columns("candidates")[1].title == "Fase de Testes"


def test_default_columns_unknown_board():
    with pytest.raises(NotFoundError):
        kb.default_columns("clients")


def test_merge_missing_columns_appends_at_end():
    saved = [kb.KanbanColumn("Entregue", "Fechadas"), kb.KanbanColumn("Custom", "Custom", custom=True)]
    merged = kb.merge_missing_columns(saved, kb.default_columns("jobs"))
    assert merged[0].title == "Fechadas"  # título salvo prevalece
    assert merged[1].id == "Custom"
    assert len(merged) == 9
    assert [c.id for c in merged].count("Entregue") == 1


def test_rename_blank_keeps_title():
    cols = kb.default_columns("jobs")
    assert kb.rename_column(cols, "Em Triagem", "   ")[1].title == "Em Triagem"
    assert kb.rename_column(cols, "Em Triagem", " Triagem RH ")[1].title == "Triagem RH"
    assert cols[1].title == "Em Triagem"  # não muta a entrada


def test_rename_unknown_column():
    with pytest.raises(NotFoundError):
        kb.rename_column(kb.default_columns("jobs"), "Nada", "X")


def test_reorder_columns_splice():
    cols = kb.default_columns("jobs")
    out = kb.reorder_columns(cols, 0, 2)
    assert [c.id for c in out[:3]] == ["Em Triagem", "Primeira Entrevista", "Vagas Abertas"]
    with pytest.raises(ValidationError):
        kb.reorder_columns(cols, 0, 8)


def test_add_and_remove_custom_column():
    cols = kb.add_column(kb.default_columns("candidates"), " Proposta ", "bg-pink-400")
    assert cols[-1].id == "Proposta" and cols[-1].custom
    with pytest.raises(ValidationError):
        kb.add_column(cols, "proposta")
    with pytest.raises(ValidationError):
        kb.add_column(cols, "  ")
    assert "Proposta" not in [c.id for c in kb.remove_column(cols, "Proposta")]
    with pytest.raises(ValidationError):
        kb.remove_column(cols, "Triagem")


def test_group_by_stage_counts_and_unassigned():
    cols = kb.default_columns("candidates")
    cards = [_card("a", "Triagem", 1), _card("b", "Triagem", 0), _card("c", "Testes"), _card("d", "Sumiu")]
    state = kb.group_by_stage(cards, cols, _stage)
    assert [c.id for c in state.cards["Triagem"]] == ["b", "a"]
    assert state.columns[0].count == 2 and state.columns[1].count == 1
    assert [c.id for c in state.unassigned] == ["d"]
    assert cols[0].count == 0


def test_move_card_to_index_and_end():
    cards = [_card("a", "Triagem", 0), _card("b", "Testes", 0), _card("c", "Testes", 1)]
    column, prev = kb.move_card(cards, "a", "Testes", _stage, index=1)
    assert prev == "Triagem"
    assert [c.id for c in column] == ["b", "a", "c"]

    column, _ = kb.move_card(cards, "a", "Testes", _stage)
    assert [c.id for c in column][-1] == "a"

    column, _ = kb.move_card(cards, "a", "Testes", _stage, index=99)
    assert [c.id for c in column] == ["b", "c", "a"]


def test_move_card_within_same_column():
    cards = [_card("a", "Triagem", 0), _card("b", "Triagem", 1), _card("c", "Triagem", 2)]
    column, prev = kb.move_card(cards, "c", "Triagem", _stage, index=0)
    assert prev == "Triagem"
    kb.renumber(column)
    assert [(c.id, c.position) for c in column] == [("c", 0), ("a", 1), ("b", 2)]


def test_move_card_unknown():
    with pytest.raises(NotFoundError):
        kb.move_card([_card("a", "Triagem")], "z", "Testes", _stage)
