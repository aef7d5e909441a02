"""
Schema de entrada de pipelines.

Todo pipeline pode declarar o tipo esperado do seu input inicial. A
validação (e coerção) ocorre uma única vez por invocação, antes de
qualquer Step executar; o valor validado passa a ser tanto o valor
corrente inicial quanto o contexto inicial da run.

Qualquer tipo aceito por `pydantic.TypeAdapter` é um schema válido:
subclasses de `BaseModel`, `TypedDict`, dataclasses e tipos builtin.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError

from insight_flow.core.exceptions import InputValidationError


@dataclass(frozen=True)
class InputSchema:
    """Schema compilado do input inicial (TypeAdapter cacheado)."""

    type_: Any
    _adapter: TypeAdapter = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_adapter", TypeAdapter(self.type_))

    @property
    def name(self) -> str:
        return getattr(self.type_, "__name__", repr(self.type_))

    def validate(self, data: Any) -> Any:
        try:
            return self._adapter.validate_python(data)
        except ValidationError as e:
            raise InputValidationError(
                message=f"Input does not match schema '{self.name}'",
                details={
                    "schema": self.name,
                    "errors": [
                        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
                        for err in e.errors()
                    ],
                },
                hint="Ajuste o input da invocação para respeitar o schema declarado no pipeline",
            ) from e


def as_schema(schema: Any) -> Optional[InputSchema]:
    if schema is None or isinstance(schema, InputSchema):
        return schema
    return InputSchema(schema)
