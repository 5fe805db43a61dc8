from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from ..crud.beans import create_bean, delete_bean, list_beans, update_bean
from ..db.session import get_db
from ..deps.auth import AuthContext, require_account
from ..deps.resources import require_bean
from ..schemas.bean import BeanCreate, BeanOut, BeanUpdate

router = APIRouter(prefix="/api/v1/beans", tags=["beans"], dependencies=[Depends(require_account)])


@router.get("", response_model=list[BeanOut])
def api_list_beans(
    roast_level: Optional[str] = None,
    origin: Optional[str] = None,
    limit: Optional[int] = None,
    offset: int = 0,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_account),
):
    return list_beans(db, owner=auth.account, roast_level=roast_level, origin=origin, limit=limit, offset=offset)


@router.get("/{bean_id}", response_model=BeanOut)
def api_get_bean(bean_id: int, db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    return require_bean(db, bean_id, auth)


@router.post("", response_model=BeanOut, status_code=201)
def api_create_bean(payload: BeanCreate, db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    try:
        return create_bean(db, payload.model_dump(), owner=auth.account)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.patch("/{bean_id}", response_model=BeanOut)
def api_update_bean(
    bean_id: int,
    payload: BeanUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_account),
):
    bean = require_bean(db, bean_id, auth)
    try:
        return update_bean(db, bean, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.delete("/{bean_id}", status_code=204)
def api_delete_bean(bean_id: int, db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    delete_bean(db, require_bean(db, bean_id, auth))
    return Response(status_code=204)
