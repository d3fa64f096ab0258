"""Progress module for tracking learner progress and quiz history."""

from scrum_sensei.progress.router import router
from scrum_sensei.progress.service import ProgressStore


__all__ = ["ProgressStore", "router"]
