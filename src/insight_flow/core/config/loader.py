"""
Carregamento da configuração do Insight Flow a partir de arquivos.

Fontes, em ordem de precedência crescente:
    1. defaults embutidos (`DEFAULT_CONFIG`, só em `load_effective_config`)
    2. arquivo de defaults do projeto (obrigatório)
    3. arquivo local de overrides (opcional, ignorado se não existir)

Formatos aceitos: YAML (`.yaml`, `.yml`) e JSON (`.json`).

Invariantes:
    - A raiz de cada arquivo é um mapeamento; arquivo vazio equivale a `{}`
    - Camadas são combinadas com `deep_merge` (nunca mutam a camada base)
"""

from pathlib import Path
from typing import Any, Callable, Dict, IO, Optional, Union
import json

import yaml  # PyYAML

from .defaults import resolve_config
from .errors import (
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)
from .merge import deep_merge


PathLike = Union[str, Path]

_PARSERS: Dict[str, Callable[[IO[str]], Any]] = {
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
    ".json": json.load,
}


def _read_layer(path: Path) -> Dict[str, Any]:
    parser = _PARSERS.get(path.suffix.lower())
    if parser is None:
        raise UnsupportedConfigFormatError(
            f"Formato não suportado: {path.suffix or '<sem extensão>'} ({path.name})"
        )

    with path.open("r", encoding="utf-8") as fh:
        data = parser(fh)

    layer = {} if data is None else data
    if not isinstance(layer, dict):
        raise InvalidConfigRootTypeError(
            f"{path.name}: raiz deve ser um mapeamento, recebido {type(layer).__name__}"
        )
    return layer


def load_config(
    *,
    defaults_path: PathLike,
    local_path: Optional[PathLike] = None,
) -> Dict[str, Any]:
    """
    Combina o arquivo de defaults do projeto com o override local.

    Raises:
        DefaultsNotFoundError: Se `defaults_path` não existir.
        UnsupportedConfigFormatError: Extensão desconhecida.
        InvalidConfigRootTypeError: Raiz do arquivo não é um mapeamento.
        ConfigTypeConflictError: Tipos incompatíveis entre as camadas.
    """
    defaults_file = Path(defaults_path)
    if not defaults_file.is_file():
        raise DefaultsNotFoundError(f"Arquivo de defaults não encontrado: {defaults_file}")

    config = _read_layer(defaults_file)

    if local_path is not None and Path(local_path).is_file():
        config = deep_merge(config, _read_layer(Path(local_path)))

    return config


def load_effective_config(
    *,
    defaults_path: PathLike,
    local_path: Optional[PathLike] = None,
) -> Dict[str, Any]:
    """`load_config` aplicado sobre os defaults embutidos (todas as seções presentes)."""
    return resolve_config(load_config(defaults_path=defaults_path, local_path=local_path))
