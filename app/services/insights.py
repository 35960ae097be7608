"""
LevelUp AI - Progress Insights.

Rule-based summary of a user's progress figures, returned next to the
AI-generated recommendations on a progress update.
"""

from typing import List

from app.schemas.generation import ProgressData
from app.schemas.records import ProgressInsights


def consistency_band(completed_workouts: int) -> str:
    if completed_workouts >= 20:
        return "excellent"
    if completed_workouts >= 10:
        return "good"
    if completed_workouts >= 5:
        return "fair"
    return "needs_improvement"


def progress_trend(progress: ProgressData) -> str:
    """Grade the trend by how many positive signals the figures show."""
    factors = 0
    if progress.weight_progress and abs(progress.weight_progress) > 1:
        factors += 1
    if progress.strength_progress:
        factors += 1
    if progress.adherence_rate > 80:
        factors += 1

    if factors >= 3:
        return "excellent_progress"
    if factors == 2:
        return "good_progress"
    if factors == 1:
        return "moderate_progress"
    return "slow_progress"


def progress_tips(progress: ProgressData) -> List[str]:
    tips = []
    if progress.adherence_rate < 70:
        tips.append("Focus on building consistent habits")
    if progress.completed_workouts < 5:
        tips.append("Aim to complete more workouts this week")
    if progress.strength_progress is not None and not progress.strength_progress:
        tips.append("Track your lifting progress to see improvements")
    return tips


def next_milestone(completed_workouts: int) -> str:
    if completed_workouts < 10:
        return "Complete your first 10 workouts"
    if completed_workouts < 25:
        return "Reach 25 total workouts"
    if completed_workouts < 50:
        return "Achieve 50 workout milestone"
    return "Maintain consistency for 100+ workouts"


def progress_insights(progress: ProgressData) -> ProgressInsights:
    return ProgressInsights(
        workout_consistency=consistency_band(progress.completed_workouts),
        adherence_score=progress.adherence_rate,
        progress_trend=progress_trend(progress),
        recommendations=progress_tips(progress),
        next_milestone=next_milestone(progress.completed_workouts),
    )
