from datetime import datetime
from typing import Optional, Union

from models import Screening
from schemas import local_naive


def has_conflict(
    session,
    room_id: int,
    scheduled_at: Union[datetime, str],
    exclude_screening_id: Optional[int] = None,
) -> bool:
    """Return True if another active screening holds this room at exactly this time.

    Screenings are point events, so only an identical ``scheduled_at`` counts.
    ``exclude_screening_id`` leaves the row being updated out of the comparison.
    """
    if isinstance(scheduled_at, str):
        scheduled_at = datetime.fromisoformat(scheduled_at)
    scheduled_at = local_naive(scheduled_at).replace(microsecond=0)

    query = session.query(Screening.id).filter(
        Screening.room_id == room_id,
        Screening.scheduled_at == scheduled_at,
        Screening.active.is_(True),
    )
    if exclude_screening_id is not None:
        query = query.filter(Screening.id != exclude_screening_id)

    return bool(session.query(query.exists()).scalar())
