from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bankrec.db import get_db
from bankrec.models.organization import Organization
from bankrec.schemas.organizations import OrganizationCreate, OrganizationOut


router = APIRouter(prefix="/api/v1/organizations", tags=["organizations"])


@router.get("/", response_model=list[OrganizationOut])
def list_organizations(db: Session = Depends(get_db)):
    return db.query(Organization).order_by(Organization.created_at.desc()).all()


@router.post("/", response_model=OrganizationOut, status_code=201)
def create_organization(payload: OrganizationCreate, db: Session = Depends(get_db)):
    org = Organization(name=payload.name, currency=payload.currency.upper())
    db.add(org)
    db.commit()
    db.refresh(org)
    return org
