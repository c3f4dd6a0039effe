"""API surface models.

This module contains models for exported members, their classification into
public and internal surfaces, and the encapsulation issues raised on them.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ApiMemberKind = Literal[
    "class",
    "interface",
    "function",
    "variable",
    "constant",
    "type",
    "enum",
    "namespace",
]

EncapsulationIssueType = Literal[
    "public-implementation-detail",
    "unstable-api",
    "excessive-exposure",
]


class SourceLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    line: int = Field(ge=1)
    column: int = Field(ge=1)


class ApiMember(BaseModel):
    """A symbol declared at module level in a source file."""

    model_config = ConfigDict(frozen=True)

    name: str
    kind: ApiMemberKind
    is_exported: bool
    is_default: bool = False
    exposed_by: str = Field(description="Repository-relative file declaring it")
    location: SourceLocation
    description: str | None = None


class EncapsulationIssue(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: EncapsulationIssueType
    member: ApiMember
    reason: str


class ApiSurfaceResult(BaseModel):
    """Public and internal API surfaces of a repository."""

    module_count: int
    entry_points: list[str] = Field(default_factory=list)
    exported_members: list[ApiMember] = Field(default_factory=list)
    public_api_surface: list[ApiMember] = Field(default_factory=list)
    internal_api_surface: list[ApiMember] = Field(default_factory=list)
    encapsulation_issues: list[EncapsulationIssue] = Field(default_factory=list)


__all__ = [
    "ApiMember",
    "ApiMemberKind",
    "ApiSurfaceResult",
    "EncapsulationIssue",
    "EncapsulationIssueType",
    "SourceLocation",
]
