# tests/orchestration/test_personas.py
"""Testes das personas padrão e dos overrides por configuração."""

import pytest
from pydantic import ValidationError

try:
    from insight_flow.orchestration.personas import ARCHITECT, DEFAULT_PERSONAS, QA_ENGINEER, load_personas
except Exception as e:  # noqa: BLE001
    load_personas = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"Missing personas module. Import error: {_IMPORT_ERR}")


def test_defaults_cover_four_roles():
    _require_imports()
    personas = load_personas()
    assert set(personas) == {"BUSINESS_ANALYST", "ARCHITECT", "DEVELOPER", "QA_ENGINEER"}
    assert personas[QA_ENGINEER].role == "QA Engineer"


def test_partial_override_keeps_other_fields():
    _require_imports()
    personas = load_personas({"personas": {ARCHITECT: {"role": "Chief Architect"}}})
    assert personas[ARCHITECT].role == "Chief Architect"
    assert personas[ARCHITECT].focus == DEFAULT_PERSONAS[ARCHITECT].focus
    assert DEFAULT_PERSONAS[ARCHITECT].role == "Solution Architect"


def test_new_persona_requires_all_fields():
    _require_imports()
    assert load_personas(
        {"personas": {"SRE": {"role": "SRE", "expertise": "operations", "focus": "reliability"}}}
    )["SRE"].role == "SRE"
    with pytest.raises(ValidationError):
        load_personas({"personas": {"SRE": {"role": "SRE"}}})
