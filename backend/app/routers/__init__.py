from app.routers import admin, auth, health, leaderboard, practice, quizzes, rewards, videos

__all__ = [
    "admin",
    "auth",
    "health",
    "leaderboard",
    "practice",
    "quizzes",
    "rewards",
    "videos",
]
