"""
Conversão de issues do Jira (JSON da REST API v2) para os modelos de
input da orquestração.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from insight_flow.orchestration.schemas import IssueDocument, JiraIssueInput


def _name(value: Optional[Dict[str, Any]], key: str = "name") -> Optional[str]:
    if not isinstance(value, dict):
        return None
    return value.get(key)


def _linked_keys(fields: Dict[str, Any]) -> List[str]:
    keys: List[str] = []
    for link in fields.get("issuelinks") or []:
        for side in ("outwardIssue", "inwardIssue"):
            key = _name(link.get(side), "key")
            if key:
                keys.append(key)
    return keys


def _comments(fields: Dict[str, Any]) -> str:
    comments = (fields.get("comment") or {}).get("comments") or []
    rendered = [
        f"[{_name(c.get('author'), 'displayName') or 'Unknown'} on {c.get('created', '')}]: {c.get('body', '')}"
        for c in comments
    ]
    return "\n\n".join(rendered) or "No comments yet."


def issue_document(issue: Dict[str, Any], host: str = "") -> IssueDocument:
    """Renderiza a issue como texto (página) com metadados mínimos."""
    key = issue.get("key", "")
    fields = issue.get("fields") or {}
    description = fields.get("description")

    lines = [f"Issue Key: {key}", f"Summary: {fields.get('summary', '')}"]
    if description:
        lines.append(f"Description: {description}")
    lines.extend(
        [
            f"Status: {_name(fields.get('status')) or 'To Do'}",
            f"Priority: {_name(fields.get('priority')) or 'None'}",
            f"Assignee: {_name(fields.get('assignee'), 'displayName') or 'Unassigned'}",
            f"Reporter: {_name(fields.get('reporter'), 'displayName') or 'Unknown'}",
            "",
            "---COMMENTS---",
            _comments(fields),
        ]
    )

    metadata: Dict[str, Any] = {
        "key": key,
        "title": fields.get("summary", ""),
        "issue_url": f"{host.rstrip('/')}/browse/{key}" if host else f"/browse/{key}",
    }
    if description:
        metadata["description"] = description
    components = [c.get("name") for c in fields.get("components") or [] if c.get("name")]
    if components:
        metadata["components"] = components

    return IssueDocument(page_content="\n".join(lines).strip(), metadata=metadata)


def issue_input(issue: Dict[str, Any]) -> JiraIssueInput:
    """Mapeia os campos da issue para `JiraIssueInput` (épico = `parent.key`)."""
    fields = issue.get("fields") or {}
    return JiraIssueInput(
        title=fields.get("summary"),
        description=fields.get("description"),
        components=[c["name"] for c in fields.get("components") or [] if c.get("name")] or None,
        linked_issues=_linked_keys(fields) or None,
        labels=list(fields.get("labels") or []) or None,
        priority=_name(fields.get("priority")),
        epic_link=_name(fields.get("parent"), "key"),
    )
