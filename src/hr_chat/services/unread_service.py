from __future__ import annotations

from dataclasses import dataclass, field

from hr_chat.domain.value_objects.room import RoomKey


@dataclass(slots=True)
class UnreadSummary:
    private: dict[str, int] = field(default_factory=dict)
    groups: dict[str, int] = field(default_factory=dict)
    total: int = 0


def summarize(user_id: int, counts: dict[str, int]) -> UnreadSummary:
    """Group raw room-key counters by conversation for the client badge."""
    summary = UnreadSummary()
    for raw_key, count in counts.items():
        if count <= 0:
            continue
        try:
            room_key = RoomKey.parse(raw_key)
        except ValueError:
            continue
        if room_key.is_group:
            summary.groups[str(room_key.group_id)] = count
        else:
            try:
                other = room_key.counterpart(user_id)
            except ValueError:
                continue
            summary.private[str(other)] = count
        summary.total += count
    return summary
