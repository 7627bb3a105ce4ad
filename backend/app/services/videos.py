"""Interactive video modules with timed checkpoint questions."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Collection, Sequence
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import NotFoundError, ValidationFailed
from app.models.credit import CreditTransactionType
from app.models.quiz import OptionLetter
from app.models.video import VideoCheckpoint, VideoCheckpointAnswer, VideoModule, VideoProgress
from app.services.credits import adjust_balance, lock_user

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckpointOutcome:
    checkpoint_id: uuid.UUID
    is_correct: bool
    feedback: str | None
    hint: str | None
    correct_answer: OptionLetter | None
    attempt_count: int
    # Where playback resumes: the checkpoint on success, the section start otherwise.
    resume_at: int


@dataclass(frozen=True)
class VideoCompletion:
    video_id: uuid.UUID
    credits_earned: int
    balance: int


def list_videos(db: Session) -> list[VideoModule]:
    return list(
        db.scalars(
            select(VideoModule).where(VideoModule.is_active == True).order_by(VideoModule.created_at)  # noqa: E712
        )
    )


def get_video(db: Session, video_id: uuid.UUID) -> VideoModule:
    video = db.scalar(select(VideoModule).where(VideoModule.id == video_id, VideoModule.is_active == True))  # noqa: E712
    if video is None:
        raise NotFoundError("Video not found")
    return video


def list_checkpoints(db: Session, video_id: uuid.UUID) -> list[VideoCheckpoint]:
    return list(
        db.scalars(
            select(VideoCheckpoint)
            .where(VideoCheckpoint.video_id == video_id)
            .order_by(VideoCheckpoint.pause_time, VideoCheckpoint.id)
        )
    )


def next_checkpoint(
    checkpoints: Sequence[VideoCheckpoint],
    previous_time: float,
    current_time: float,
    done_ids: Collection[uuid.UUID] = (),
) -> VideoCheckpoint | None:
    """First unanswered checkpoint crossed while playing from previous_time to current_time."""
    for cp in sorted(checkpoints, key=lambda c: c.pause_time):
        if cp.id in done_ids:
            continue
        if previous_time < cp.pause_time <= current_time:
            return cp
    return None


def section_start(pause_time: int, section_seconds: int | None = None) -> int:
    size = int(section_seconds or settings.video_section_seconds)
    if size <= 0:
        return 0
    return (int(pause_time) // size) * size


def _get_or_create_progress(db: Session, *, user_id: uuid.UUID, video_id: uuid.UUID) -> VideoProgress:
    progress = db.scalar(
        select(VideoProgress).where(VideoProgress.user_id == user_id, VideoProgress.video_id == video_id)
    )
    if progress is None:
        progress = VideoProgress(
            user_id=user_id,
            video_id=video_id,
            current_time=0,
            completed=False,
            quiz_score=0,
            total_quiz_questions=0,
            credits_awarded=False,
        )
        db.add(progress)
        db.flush()
    return progress


def get_progress(db: Session, *, user_id: uuid.UUID, video_id: uuid.UUID) -> VideoProgress | None:
    return db.scalar(select(VideoProgress).where(VideoProgress.user_id == user_id, VideoProgress.video_id == video_id))


def save_progress(db: Session, *, user_id: uuid.UUID, video_id: uuid.UUID, current_time: int) -> VideoProgress:
    video = get_video(db, video_id)
    t = max(0, int(current_time))
    if video.duration:
        t = min(t, int(video.duration))

    progress = _get_or_create_progress(db, user_id=user_id, video_id=video.id)
    progress.current_time = t
    progress.last_watched_at = datetime.utcnow()
    return progress


def _correct_checkpoint_ids(db: Session, *, user_id: uuid.UUID, video_id: uuid.UUID) -> set[uuid.UUID]:
    return set(
        db.scalars(
            select(VideoCheckpointAnswer.checkpoint_id).where(
                VideoCheckpointAnswer.user_id == user_id,
                VideoCheckpointAnswer.video_id == video_id,
                VideoCheckpointAnswer.is_correct == True,  # noqa: E712
            )
        )
    )


def answer_checkpoint(
    db: Session,
    *,
    user_id: uuid.UUID,
    video_id: uuid.UUID,
    checkpoint_id: uuid.UUID,
    selected: OptionLetter,
) -> CheckpointOutcome:
    video = get_video(db, video_id)
    cp = db.scalar(
        select(VideoCheckpoint).where(VideoCheckpoint.id == checkpoint_id, VideoCheckpoint.video_id == video.id)
    )
    if cp is None:
        raise NotFoundError("Checkpoint not found")

    letter = OptionLetter(getattr(selected, "value", selected))
    if (letter == OptionLetter.C and cp.option_c is None) or (letter == OptionLetter.D and cp.option_d is None):
        raise ValidationFailed(f"option {letter.value} is not available for this checkpoint")

    previous = db.scalar(
        select(func.count(VideoCheckpointAnswer.id)).where(
            VideoCheckpointAnswer.user_id == user_id,
            VideoCheckpointAnswer.checkpoint_id == cp.id,
        )
    )
    attempt_count = int(previous or 0) + 1
    already_correct = cp.id in _correct_checkpoint_ids(db, user_id=user_id, video_id=video.id)

    ok = letter == cp.correct_answer
    db.add(
        VideoCheckpointAnswer(
            user_id=user_id,
            video_id=video.id,
            checkpoint_id=cp.id,
            selected_answer=letter,
            is_correct=ok,
            attempt_count=attempt_count,
        )
    )

    progress = _get_or_create_progress(db, user_id=user_id, video_id=video.id)
    if ok and not already_correct:
        progress.quiz_score = int(progress.quiz_score or 0) + 1
        progress.total_quiz_questions = len(list_checkpoints(db, video.id))
    progress.last_watched_at = datetime.utcnow()
    db.flush()

    if ok:
        return CheckpointOutcome(
            checkpoint_id=cp.id,
            is_correct=True,
            feedback=cp.correct_feedback,
            hint=None,
            correct_answer=cp.correct_answer,
            attempt_count=attempt_count,
            resume_at=int(cp.pause_time),
        )
    return CheckpointOutcome(
        checkpoint_id=cp.id,
        is_correct=False,
        feedback=cp.incorrect_feedback,
        hint=cp.hint_text,
        correct_answer=None,
        attempt_count=attempt_count,
        resume_at=section_start(cp.pause_time),
    )


def complete_video(db: Session, *, user_id: uuid.UUID, video_id: uuid.UUID) -> VideoCompletion:
    """Mark a video watched; the completion bonus is paid once per user and video."""
    video = get_video(db, video_id)
    user = lock_user(db, user_id)

    checkpoints = list_checkpoints(db, video.id)
    done = _correct_checkpoint_ids(db, user_id=user.id, video_id=video.id)
    missing = [cp for cp in checkpoints if cp.id not in done]
    if missing:
        raise ValidationFailed(f"{len(missing)} checkpoint(s) still need a correct answer")

    progress = _get_or_create_progress(db, user_id=user.id, video_id=video.id)
    progress.completed = True
    progress.quiz_score = len(checkpoints)
    progress.total_quiz_questions = len(checkpoints)
    if video.duration:
        progress.current_time = int(video.duration)
    progress.last_watched_at = datetime.utcnow()

    earned = 0
    bonus = int(settings.video_completion_credits)
    if not progress.credits_awarded and bonus > 0:
        adjust_balance(
            db,
            user=user,
            delta=bonus,
            type=CreditTransactionType.bonus,
            description=f"Watched video: {video.title}",
            related_id=video.id,
        )
        progress.credits_awarded = True
        earned = bonus
    db.flush()

    return VideoCompletion(video_id=video.id, credits_earned=earned, balance=int(user.credits or 0))
