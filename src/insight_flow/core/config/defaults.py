"""
Defaults embutidos da configuração do Insight Flow.

`resolve_config` aplica um override (tipicamente o resultado de
`load_config`) sobre estes defaults usando a mesma política de
`deep_merge`, de modo que código de engine e orquestração sempre
encontra todas as seções conhecidas.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from .merge import deep_merge


DEFAULT_CONFIG: Dict[str, Any] = {
    "engine": {
        # "error" | "ignore"
        "unresolved_label": "error",
    },
    "personas": {},
    "research": {
        "max_refinements": 0,
    },
    "memory": {
        "chunk_size": 1000,
        "chunk_overlap": 200,
        "search_k": 3,
    },
    "tracker": {
        "host": "",
        "username": "",
        "token_env": "JIRA_ACCESS_TOKEN",
        "timeout": 30,
    },
}


def resolve_config(override: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return deep_merge(DEFAULT_CONFIG, override or {})
