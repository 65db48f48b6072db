"""Shared router dependencies."""

from fastapi import Depends
from sqlalchemy.orm import Session

from dockdirect.database import get_db
from dockdirect.services.matching import MatchingFacade


def get_matching(db: Session = Depends(get_db)) -> MatchingFacade:
    return MatchingFacade(db)
