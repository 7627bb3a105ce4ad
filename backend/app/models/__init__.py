from app.models.user import User, UserRole
from app.models.quiz import OptionLetter, Question, QuestionDifficulty, Quiz
from app.models.attempt import QuizAttempt, QuizAttemptAnswer
from app.models.credit import CreditTransaction, CreditTransactionType
from app.models.reward import Redemption, RedemptionStatus, Reward, RewardCategory
from app.models.video import VideoCheckpoint, VideoCheckpointAnswer, VideoDifficulty, VideoModule, VideoProgress
from app.models.practice import MessageRole, PracticeMessage, PracticeScenario, UserWeakArea
from app.models.audit import AuditEvent

__all__ = [
    "User",
    "UserRole",
    "Quiz",
    "Question",
    "OptionLetter",
    "QuestionDifficulty",
    "QuizAttempt",
    "QuizAttemptAnswer",
    "CreditTransaction",
    "CreditTransactionType",
    "Reward",
    "RewardCategory",
    "Redemption",
    "RedemptionStatus",
    "VideoModule",
    "VideoDifficulty",
    "VideoCheckpoint",
    "VideoProgress",
    "VideoCheckpointAnswer",
    "PracticeScenario",
    "PracticeMessage",
    "MessageRole",
    "UserWeakArea",
    "AuditEvent",
]
