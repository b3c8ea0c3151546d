"""Translate ``?sort=`` query values into SQL ORDER BY clauses."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy.sql.elements import ColumnElement

SortSpec = Mapping[str, tuple[ColumnElement[Any], ColumnElement[Any]]]


def resolve_sort(
    sort: str | None,
    *,
    allowed: SortSpec,
    default: str,
    id_field: tuple[ColumnElement[Any], ColumnElement[Any]],
) -> list[ColumnElement[Any]]:
    """Return ORDER BY clauses for a comma separated ``sort`` value.

    A leading ``-`` sorts descending. The id column is always appended so
    pagination is stable.
    """

    tokens = [token.strip() for token in (sort or default).split(",") if token.strip()]
    clauses: list[ColumnElement[Any]] = []
    descending_last = False
    for token in tokens:
        descending = token.startswith("-")
        name = token[1:] if descending else token
        spec = allowed.get(name)
        if spec is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail={
                    "error": "invalid_sort",
                    "message": f"Unsupported sort field '{name}'.",
                },
            )
        clauses.append(spec[1] if descending else spec[0])
        descending_last = descending
    clauses.append(id_field[1] if descending_last else id_field[0])
    return clauses


__all__ = ["SortSpec", "resolve_sort"]
