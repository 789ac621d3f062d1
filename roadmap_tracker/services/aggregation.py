"""
Pure aggregation functions over progress and session rows

Nothing here touches the database; AnalyticsService loads rows and hands
them to these functions so the arithmetic can be tested in isolation.
"""
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence

from roadmap_tracker.enums import LeaderboardType, Period, ProgressStatus
from roadmap_tracker.errors import ValidationError

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

LEADERBOARD_FIELDS = {
    LeaderboardType.COMPLETION: "items_completed",
    LeaderboardType.STREAK: "streak_days",
    LeaderboardType.TIME: "total_time_spent",
}


def period_start(period: str, now: datetime) -> Optional[datetime]:
    """
    Lower bound of a reporting period, or None for "all"

    today = start of the calendar day, week = now minus 7 days,
    month = first day of the month, year = January 1.
    """
    try:
        period = Period(period)
    except ValueError:
        raise ValidationError(
            f"Invalid period '{period}'. Must be one of: {', '.join(p.value for p in Period)}"
        )

    if period is Period.ALL:
        return None
    if period is Period.TODAY:
        return datetime(now.year, now.month, now.day)
    if period is Period.WEEK:
        return now - timedelta(days=7)
    if period is Period.MONTH:
        return datetime(now.year, now.month, 1)
    return datetime(now.year, 1, 1)


def _percentage(part: int, whole: int) -> int:
    if whole <= 0:
        return 0
    return round(100 * part / whole)


def overview_stats(records: Iterable[Any]) -> Dict[str, Any]:
    """Counts by status, time total, mean rating and completion percentage"""
    total = completed = in_progress = time_spent = 0
    ratings = []

    for record in records:
        total += 1
        if record.status == ProgressStatus.COMPLETED.value:
            completed += 1
        elif record.status == ProgressStatus.IN_PROGRESS.value:
            in_progress += 1
        time_spent += record.time_spent or 0
        if record.rating is not None:
            ratings.append(record.rating)

    return {
        "total_items": total,
        "completed_items": completed,
        "in_progress_items": in_progress,
        "not_started_items": total - completed - in_progress,
        "total_time_spent": time_spent,
        "average_rating": round(sum(ratings) / len(ratings), 2) if ratings else 0.0,
        "completion_percentage": _percentage(completed, total),
    }


def progress_stats(records: Sequence[Any], since: Optional[datetime] = None) -> Dict[str, Any]:
    """Overview stats restricted to records updated since a bound, plus difficulty counts"""
    if since is not None:
        records = [r for r in records if r.updated_at >= since]

    stats = overview_stats(records)
    difficulty_counts: Dict[str, int] = defaultdict(int)
    for record in records:
        difficulty_counts[record.difficulty] += 1
    stats["difficulty_counts"] = dict(difficulty_counts)
    return stats


def compute_streak(completion_dates: Iterable[date], today: date) -> Dict[str, int]:
    """
    Current and longest run of consecutive completion days

    The current streak counts back from today and is 0 when today has no
    completion, even if yesterday did.
    """
    unique_dates = set(completion_dates)
    if not unique_dates:
        return {"current_streak": 0, "longest_streak": 0}

    current = 0
    check = today
    while check in unique_dates:
        current += 1
        check -= timedelta(days=1)

    ordered = sorted(unique_dates, reverse=True)
    longest = 0
    run = 1
    for previous, current_date in zip(ordered, ordered[1:]):
        if (previous - current_date).days == 1:
            run += 1
        else:
            longest = max(longest, run)
            run = 1
    longest = max(longest, run)

    return {"current_streak": current, "longest_streak": longest}


def section_breakdown(records: Iterable[Any], phase_id: str) -> List[Dict[str, Any]]:
    """Per-section counts within one phase, in first-seen order"""
    groups: Dict[str, Dict[str, Any]] = {}
    for record in records:
        if record.phase_id != phase_id:
            continue
        group = groups.setdefault(record.section_id, {
            "section_id": record.section_id,
            "total_items": 0,
            "completed_items": 0,
            "in_progress_items": 0,
        })
        group["total_items"] += 1
        if record.status == ProgressStatus.COMPLETED.value:
            group["completed_items"] += 1
        elif record.status == ProgressStatus.IN_PROGRESS.value:
            group["in_progress_items"] += 1
    return list(groups.values())


def skills_by_phase(records: Iterable[Any]) -> Dict[str, Any]:
    """Per-phase proficiency and difficulty distribution"""
    grouped: Dict[str, List[Any]] = defaultdict(list)
    for record in records:
        grouped[record.phase_id].append(record)

    skills = []
    difficulty_analysis = []
    for phase_id, phase_records in grouped.items():
        stats = overview_stats(phase_records)
        skills.append({
            "phase_id": phase_id,
            "total_items": stats["total_items"],
            "completed_items": stats["completed_items"],
            "in_progress_items": stats["in_progress_items"],
            "total_time_spent": stats["total_time_spent"],
            "average_rating": stats["average_rating"],
            "proficiency": stats["completion_percentage"],
        })

        counts: Dict[str, int] = defaultdict(int)
        for record in phase_records:
            counts[record.difficulty] += 1
        difficulty_analysis.append({
            "phase_id": phase_id,
            "difficulties": [
                {"difficulty": difficulty, "count": count}
                for difficulty, count in sorted(counts.items())
            ],
        })

    skills.sort(key=lambda s: s["completed_items"], reverse=True)
    return {"skills": skills, "difficulty_analysis": difficulty_analysis}


def monthly_activity(records: Iterable[Any]) -> List[Dict[str, Any]]:
    """Completed items and time per month of last update"""
    months: Dict[str, Dict[str, Any]] = {}
    for record in records:
        key = record.updated_at.strftime("%Y-%m")
        month = months.setdefault(key, {"month": key, "items_completed": 0, "time_spent": 0})
        if record.status == ProgressStatus.COMPLETED.value:
            month["items_completed"] += 1
        month["time_spent"] += record.time_spent or 0
    return [months[key] for key in sorted(months)]


def completion_trends(records: Iterable[Any], since: datetime) -> Dict[str, Any]:
    """Daily completion counts since a bound and the running total"""
    daily: Dict[str, int] = defaultdict(int)
    for record in records:
        if (
            record.status == ProgressStatus.COMPLETED.value
            and record.completed_at is not None
            and record.completed_at >= since
        ):
            daily[record.completed_at.strftime("%Y-%m-%d")] += 1

    trends = [{"date": day, "completed": daily[day]} for day in sorted(daily)]

    cumulative = 0
    accumulation = []
    for point in trends:
        cumulative += point["completed"]
        accumulation.append({
            "date": point["date"],
            "daily": point["completed"],
            "cumulative": cumulative,
        })

    return {"completion_trends": trends, "progress_accumulation": accumulation}


def session_summary(sessions: Sequence[Any]) -> Dict[str, Any]:
    durations = [s.duration or 0 for s in sessions]
    if not durations:
        return {
            "total_sessions": 0,
            "total_time_spent": 0,
            "average_session_time": 0.0,
            "longest_session": 0,
            "shortest_session": 0,
        }
    return {
        "total_sessions": len(durations),
        "total_time_spent": sum(durations),
        "average_session_time": round(sum(durations) / len(durations), 2),
        "longest_session": max(durations),
        "shortest_session": min(durations),
    }


def sessions_by_day(sessions: Iterable[Any], count_key: str = "sessions") -> List[Dict[str, Any]]:
    days: Dict[str, Dict[str, Any]] = {}
    for session in sessions:
        key = session.start_time.strftime("%Y-%m-%d")
        day = days.setdefault(key, {"date": key, count_key: 0, "total_time": 0})
        day[count_key] += 1
        day["total_time"] += session.duration or 0
    return [days[key] for key in sorted(days)]


def sessions_by_hour(sessions: Iterable[Any]) -> List[Dict[str, Any]]:
    hours: Dict[int, Dict[str, Any]] = {}
    for session in sessions:
        hour = hours.setdefault(
            session.start_time.hour,
            {"hour": session.start_time.hour, "sessions": 0, "total_time": 0},
        )
        hour["sessions"] += 1
        hour["total_time"] += session.duration or 0
    return [hours[key] for key in sorted(hours)]


def best_days(sessions: Iterable[Any]) -> List[Dict[str, Any]]:
    """Weekdays ordered by total session time, busiest first"""
    weekdays: Dict[int, Dict[str, Any]] = {}
    for session in sessions:
        weekday = session.start_time.weekday()
        entry = weekdays.setdefault(
            weekday, {"day": DAY_NAMES[weekday], "sessions": 0, "total_time": 0}
        )
        entry["sessions"] += 1
        entry["total_time"] += session.duration or 0
    return sorted(weekdays.values(), key=lambda d: d["total_time"], reverse=True)


def device_breakdown(sessions: Iterable[Any]) -> List[Dict[str, Any]]:
    devices: Dict[str, Dict[str, Any]] = {}
    for session in sessions:
        entry = devices.setdefault(
            session.device_type, {"device_type": session.device_type, "count": 0, "total_time": 0}
        )
        entry["count"] += 1
        entry["total_time"] += session.duration or 0
    return sorted(devices.values(), key=lambda d: d["count"], reverse=True)


def rank_leaderboard(users: Sequence[Any], board_type: str, limit: int) -> List[Dict[str, Any]]:
    """
    Rank public, active users on one stat, highest first

    Rank is the 1-based position after a stable sort, so ties keep the
    order the users were given in.
    """
    try:
        board = LeaderboardType(board_type)
    except ValueError:
        board = LeaderboardType.COMPLETION
    field = LEADERBOARD_FIELDS[board]

    eligible = [u for u in users if u.is_active and u.public_profile]
    ranked = sorted(eligible, key=lambda u: getattr(u, field) or 0, reverse=True)[:limit]

    return [
        {
            "rank": index + 1,
            "score": getattr(user, field) or 0,
            "id": user.id,
            "username": user.username,
            "display_name": user.display_name,
            "avatar": user.avatar,
            "location": user.location,
            "total_sessions": user.total_sessions,
            "total_time_spent": user.total_time_spent,
            "items_completed": user.items_completed,
            "streak_days": user.streak_days,
            "longest_streak": user.longest_streak,
        }
        for index, user in enumerate(ranked)
    ]
