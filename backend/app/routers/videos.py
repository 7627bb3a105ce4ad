from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.errors import parse_uuid
from app.core.security import get_current_user
from app.db.session import get_db
from app.models.user import User
from app.models.video import VideoCheckpoint, VideoModule, VideoProgress
from app.schemas.video import (
    CheckpointAnswerRequest,
    CheckpointAnswerResponse,
    CheckpointPublic,
    CheckpointsResponse,
    ProgressUpdateRequest,
    VideoCompleteResponse,
    VideoItem,
    VideoProgressResponse,
    VideosResponse,
)
from app.services import videos as video_service

router = APIRouter(prefix="/videos", tags=["videos"])


def _video_item(v: VideoModule) -> VideoItem:
    return VideoItem(
        id=str(v.id),
        title=v.title,
        description=v.description,
        video_url=v.video_url,
        thumbnail_url=v.thumbnail_url,
        duration=v.duration,
        category=v.category,
        difficulty=v.difficulty.value,
    )


def _checkpoint_public(cp: VideoCheckpoint) -> CheckpointPublic:
    options = {"A": cp.option_a, "B": cp.option_b}
    if cp.option_c is not None:
        options["C"] = cp.option_c
    if cp.option_d is not None:
        options["D"] = cp.option_d
    return CheckpointPublic(id=str(cp.id), pause_time=int(cp.pause_time), prompt=cp.prompt, options=options)


def _progress(video_id, p: VideoProgress | None) -> VideoProgressResponse:
    if p is None:
        return VideoProgressResponse(
            video_id=str(video_id),
            current_time=0,
            completed=False,
            quiz_score=0,
            total_quiz_questions=0,
            last_watched_at=None,
        )
    return VideoProgressResponse(
        video_id=str(video_id),
        current_time=int(p.current_time),
        completed=bool(p.completed),
        quiz_score=int(p.quiz_score or 0),
        total_quiz_questions=int(p.total_quiz_questions or 0),
        last_watched_at=p.last_watched_at.isoformat() if p.last_watched_at else None,
    )


@router.get("", response_model=VideosResponse)
def list_videos(db: Session = Depends(get_db)):
    return VideosResponse(items=[_video_item(v) for v in video_service.list_videos(db)])


@router.get("/{video_id}", response_model=VideoItem)
def get_video(video_id: str, db: Session = Depends(get_db)):
    return _video_item(video_service.get_video(db, parse_uuid(video_id, what="video id")))


@router.get("/{video_id}/checkpoints", response_model=CheckpointsResponse)
def list_checkpoints(video_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    video = video_service.get_video(db, parse_uuid(video_id, what="video id"))
    return CheckpointsResponse(
        video_id=str(video.id),
        checkpoints=[_checkpoint_public(cp) for cp in video_service.list_checkpoints(db, video.id)],
    )


@router.post("/{video_id}/checkpoints/{checkpoint_id}/answer", response_model=CheckpointAnswerResponse)
def answer_checkpoint(
    video_id: str,
    checkpoint_id: str,
    body: CheckpointAnswerRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    outcome = video_service.answer_checkpoint(
        db,
        user_id=user.id,
        video_id=parse_uuid(video_id, what="video id"),
        checkpoint_id=parse_uuid(checkpoint_id, what="checkpoint id"),
        selected=body.selected_answer,
    )
    db.commit()
    return CheckpointAnswerResponse(
        checkpoint_id=str(outcome.checkpoint_id),
        is_correct=outcome.is_correct,
        feedback=outcome.feedback,
        hint=outcome.hint,
        correct_answer=outcome.correct_answer,
        attempt_count=outcome.attempt_count,
        resume_at=outcome.resume_at,
    )


@router.get("/{video_id}/progress", response_model=VideoProgressResponse)
def get_progress(video_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    video = video_service.get_video(db, parse_uuid(video_id, what="video id"))
    return _progress(video.id, video_service.get_progress(db, user_id=user.id, video_id=video.id))


@router.put("/{video_id}/progress", response_model=VideoProgressResponse)
def save_progress(
    video_id: str,
    body: ProgressUpdateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    vid = parse_uuid(video_id, what="video id")
    progress = video_service.save_progress(db, user_id=user.id, video_id=vid, current_time=body.current_time)
    db.commit()
    db.refresh(progress)
    return _progress(vid, progress)


@router.post("/{video_id}/complete", response_model=VideoCompleteResponse)
def complete_video(video_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    result = video_service.complete_video(db, user_id=user.id, video_id=parse_uuid(video_id, what="video id"))
    db.commit()
    return VideoCompleteResponse(video_id=str(result.video_id), credits_earned=result.credits_earned, balance=result.balance)
