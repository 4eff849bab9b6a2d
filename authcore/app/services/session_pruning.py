from typing import Optional

from authcore.app.services.unit_of_work import UnitOfWork


async def prune_excess_sessions(
    uow: UnitOfWork, user_id: int, keep_session_id: Optional[int], max_sessions: int = 10
) -> int:
    """
    Delete the least recently used sessions beyond the per-user cap.

    The kept session always survives and counts towards the cap. Does not
    commit; returns the number of deleted rows.
    """
    ids = await uow.sessions.get_ids_by_recent_use(user_id)

    if keep_session_id is not None:
        candidates = [session_id for session_id in ids if session_id != keep_session_id]
        allowed = max(max_sessions - 1, 0)
    else:
        candidates = ids
        allowed = max_sessions

    excess = candidates[allowed:]
    if not excess:
        return 0
    return await uow.sessions.delete_by_ids(excess)
