"""Chapter directory API routes."""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from cns_network.database import get_db
from cns_network.errors import NotFoundError
from cns_network.models.chapter import Chapter
from cns_network.schemas.chapter import ChapterCreate, ChapterOut

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=ChapterOut, status_code=status.HTTP_201_CREATED)
def create_chapter(payload: ChapterCreate, db: Session = Depends(get_db)):
    chapter = Chapter(**payload.model_dump())
    db.add(chapter)
    db.commit()
    db.refresh(chapter)
    logger.info("Created chapter '%s' (%s)", chapter.name, chapter.id)
    return chapter


@router.get("/", response_model=list[ChapterOut])
def list_chapters(db: Session = Depends(get_db)):
    """List all chapters by name."""
    return db.query(Chapter).order_by(Chapter.name).all()


@router.get("/{chapter_id}", response_model=ChapterOut)
def get_chapter(chapter_id: str, db: Session = Depends(get_db)):
    chapter = db.query(Chapter).filter(Chapter.id == chapter_id).first()
    if not chapter:
        raise NotFoundError("Chapter not found")
    return chapter
