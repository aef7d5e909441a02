# src/insight_flow/tracker/__init__.py
"""Acesso ao Jira: cliente HTTP e conversão de issues para os modelos da orquestração."""

from .client import CustomField, JiraApiError, JiraClient
from .issue import issue_document, issue_input

__all__ = ["CustomField", "JiraApiError", "JiraClient", "issue_document", "issue_input"]
