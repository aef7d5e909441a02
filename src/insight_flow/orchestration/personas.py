"""
Personas usadas pela análise de issues.

Cada persona descreve um papel (role), sua área de expertise e o foco
da análise. Os valores padrão podem ser sobrescritos campo a campo pela
seção `personas.<KEY>` da configuração.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from insight_flow.core.config.defaults import resolve_config

from .schemas import Persona


BUSINESS_ANALYST = "BUSINESS_ANALYST"
ARCHITECT = "ARCHITECT"
DEVELOPER = "DEVELOPER"
QA_ENGINEER = "QA_ENGINEER"

DEFAULT_PERSONAS: Dict[str, Persona] = {
    BUSINESS_ANALYST: Persona(
        role="Business Analyst",
        expertise="Requirements analysis, process optimization, stakeholder communication",
        focus="Business value, user needs, process improvements",
    ),
    ARCHITECT: Persona(
        role="Solution Architect",
        expertise="System design, technical standards, integration patterns",
        focus="Architecture, scalability, security, maintainability",
    ),
    DEVELOPER: Persona(
        role="Senior Developer",
        expertise="Code quality, implementation patterns, technical debt",
        focus="Code structure, performance, testing, maintainability",
    ),
    QA_ENGINEER: Persona(
        role="QA Engineer",
        expertise="Test planning, test automation, acceptance criteria",
        focus="Testability, user acceptance testing, regression risks",
    ),
}


def load_personas(config: Optional[Dict[str, Any]] = None) -> Dict[str, Persona]:
    """
    Resolve as personas efetivas.

    Chaves desconhecidas em `personas` definem novas personas e precisam
    declarar os três campos; chaves conhecidas aceitam overrides parciais.

    Raises:
        pydantic.ValidationError: Se uma persona resultante estiver incompleta.
    """
    overrides = resolve_config(config).get("personas") or {}
    personas = dict(DEFAULT_PERSONAS)
    for key, fields in overrides.items():
        base = personas.get(key)
        data = base.model_dump() if base is not None else {}
        data.update(fields or {})
        personas[key] = Persona.model_validate(data)
    return personas
