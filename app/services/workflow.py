from __future__ import annotations

from typing import Dict, List

from app.core.enums import ComplaintStatus as S

ALLOWED_TRANSITIONS: Dict[S, List[S]] = {
    S.pending: [S.phone_verified, S.in_progress, S.rejected, S.rejected_by_department, S.verification_failed],
    S.phone_verified: [S.in_progress, S.rejected, S.rejected_by_department],
    S.in_progress: [S.resolved, S.rejected, S.rejected_by_department],
    S.resolved: [S.rejected],
    S.rejected_by_department: [S.rejected],
    S.verification_failed: [S.rejected],
    S.rejected: [],
}


def sources_for(target: S) -> List[S]:
    """Every status from which `target` is reachable in one step."""
    return [src for src, nexts in ALLOWED_TRANSITIONS.items() if target in nexts]


# statuses an admin may approve or reject from
ADMIN_ACTIONABLE = sources_for(S.in_progress)
DEPARTMENT_REJECTABLE = sources_for(S.rejected_by_department)
RESOLVABLE = sources_for(S.resolved)
