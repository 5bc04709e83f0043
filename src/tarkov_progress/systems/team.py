"""
Team progress aggregation.

Formats every member's record with the same catalogs and merges the
results into one team view. Membership itself is owned elsewhere; this
module only receives the member ids and their stored records.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from ..state.constants import DEFAULT_GAME_MODE
from ..state.schema import HideoutData, TaskData, TeamMeta, TeamProgress
from .progress import format_progress

logger = logging.getLogger(__name__)


def team_member_ids(self_id: str, member_ids: Iterable[str] | None) -> list[str]:
    """Members in order, duplicates removed, requesting user always included."""
    ordered: list[str] = []
    for member_id in [*(member_ids or []), self_id]:
        if member_id and member_id not in ordered:
            ordered.append(member_id)
    return ordered


def aggregate_team_progress(
    documents: Mapping[str, Mapping[str, Any] | None],
    self_id: str,
    member_ids: Iterable[str] | None,
    hideout_data: HideoutData | None,
    task_data: TaskData | None,
    game_mode: str = DEFAULT_GAME_MODE,
    hidden: Mapping[str, bool] | Iterable[str] | None = None,
) -> TeamProgress:
    """
    Build the team view for ``self_id``.

    Members without a stored record are skipped. Hidden teammates are
    still included in ``data``; their ids are listed in
    ``meta.hidden_teammates`` so the caller can filter the display.
    """
    members = team_member_ids(self_id, member_ids)

    if isinstance(hidden, Mapping):
        hidden_ids = {member_id for member_id, is_hidden in hidden.items() if is_hidden}
    else:
        hidden_ids = set(hidden or [])

    data = []
    for member_id in members:
        document = documents.get(member_id)
        if not document:
            logger.warning(f"Progress document not found for member {member_id}")
            continue
        data.append(format_progress(document, member_id, hideout_data, task_data, game_mode))

    return TeamProgress(
        data=data,
        meta=TeamMeta(
            self_id=self_id,
            hidden_teammates=[m for m in members if m != self_id and m in hidden_ids],
        ),
    )
