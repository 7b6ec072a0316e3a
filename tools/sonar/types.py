from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, Tuple, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class SonarServerConfig:
    """Connection settings for SonarQube Web API calls (admin identity)."""
    url: str
    login: str
    password: str
    timeout: float = 30.0


@dataclass(frozen=True)
class QueryResult(Generic[T]):
    """Typed answer to "does this resource exist?"."""
    found: bool
    resource: Optional[T] = None

    @classmethod
    def present(cls, resource: T) -> "QueryResult[T]":
        return cls(found=True, resource=resource)

    @classmethod
    def absent(cls) -> "QueryResult[T]":
        return cls(found=False)


@dataclass(frozen=True)
class Project:
    key: str
    name: str


@dataclass(frozen=True)
class GateCondition:
    id: str
    metric: str
    op: str
    error: str


@dataclass(frozen=True)
class QualityGate:
    name: str
    conditions: Tuple[GateCondition, ...] = ()
    is_default: bool = False

    def condition_for(self, metric: str) -> Optional[GateCondition]:
        for cond in self.conditions:
            if cond.metric == metric:
                return cond
        return None


@dataclass(frozen=True)
class QualityProfile:
    key: str
    name: str
    language: str
    is_default: bool = False
