from __future__ import annotations

from ..schemas.plan import Day, Plan
from ..schemas.scouter import ScouterResponse

START_HOUR = 9


def scouter_response_to_plan(scouter: ScouterResponse) -> Plan:
    """
    Render a mission briefing as a one-day v1 Plan.

    Quests become hourly spot events from 09:00; the gear recommendation is
    appended as a final work event.
    """
    events = [
        (
            f"{START_HOUR + index:02d}:00",
            quest.t,
            quest.d,
            "spot",
            f"Recommended gear: {quest.gear}",
            scouter.target_spot.n,
        )
        for index, quest in enumerate(scouter.quests)
    ]
    events.append(
        (
            f"{START_HOUR + len(scouter.quests):02d}:00",
            "Gear purchase info",
            f"{scouter.affiliate.item}: {scouter.affiliate.reason}",
            "work",
            f"Search keyword: {scouter.affiliate.q}",
            None,
        )
    )
    return Plan(
        title=scouter.mission_title,
        intro=scouter.intro,
        target="engineer",
        days=[Day(day=1, events=events)],
    )
