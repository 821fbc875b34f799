from .analyser import ScopeAnalyser, analyse_scopes
from .classes import ComponentScope, ScopedDocument
from .policy import PageScopePolicy, ScopePolicy, SharedScopePolicy, policy_for

__all__ = [
    "ComponentScope",
    "PageScopePolicy",
    "ScopeAnalyser",
    "ScopePolicy",
    "ScopedDocument",
    "SharedScopePolicy",
    "analyse_scopes",
    "policy_for",
]
