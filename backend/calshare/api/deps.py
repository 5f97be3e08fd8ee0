from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from calshare.core.config import settings
from calshare.db import SessionDep
from calshare.services.auth import Principal, authenticate
from calshare.services.store import ResourceStore

REALM = "Restricted"

basic_scheme = HTTPBasic(realm=REALM)


def get_current_principal(
    session: SessionDep,
    credentials: HTTPBasicCredentials = Depends(basic_scheme),
) -> Principal:
    principal = authenticate(session, credentials.username, credentials.password)
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized",
            headers={"WWW-Authenticate": f'Basic realm="{REALM}"'},
        )
    return principal


PrincipalDep = Annotated[Principal, Depends(get_current_principal)]


def get_resource_store(session: SessionDep, principal: PrincipalDep) -> ResourceStore:
    """Store bound to the authenticated caller for the lifetime of one request."""
    return ResourceStore(session, principal, policy=settings.ACCESS_POLICY)


StoreDep = Annotated[ResourceStore, Depends(get_resource_store)]
