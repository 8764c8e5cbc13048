"""User directory API routes."""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from cns_network.database import get_db
from cns_network.errors import ConflictError, NotFoundError
from cns_network.models.chapter import Chapter
from cns_network.models.user import User
from cns_network.schemas.user import UserCreate, UserOut

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    """Register a directory entry."""
    if db.query(User).filter(User.email == payload.email).first():
        raise ConflictError("A user with this email already exists")
    if payload.chapter_id and not db.query(Chapter).filter(Chapter.id == payload.chapter_id).first():
        raise NotFoundError("Chapter not found")
    user = User(**payload.model_dump())
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created user %s (%s)", user.id, user.full_name)
    return user


@router.get("/", response_model=list[UserOut])
def list_users(db: Session = Depends(get_db)):
    return db.query(User).order_by(User.last_name, User.first_name).all()


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: str, db: Session = Depends(get_db)):
    """Fetch a single user by ID."""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user
