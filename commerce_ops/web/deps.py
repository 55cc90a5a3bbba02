"""FastAPI dependencies for database and workspace scoping."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from commerce_ops.core.logging import set_workspace_context
from commerce_ops.db.session import get_db


def get_workspace_scope(
    workspace_id: Annotated[str, Query(min_length=1, max_length=64)],
) -> str:
    """Workspace every query of the request is scoped to.

    Also binds the workspace to the logging context for the request.

    Raises:
        HTTPException: If the workspace id is blank

    """
    workspace_id = workspace_id.strip()
    if not workspace_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="workspace_id must not be blank",
        )

    set_workspace_context(workspace_id)
    return workspace_id


# Type aliases for cleaner endpoints
DBSession = Annotated[Session, Depends(get_db)]
WorkspaceScope = Annotated[str, Depends(get_workspace_scope)]
