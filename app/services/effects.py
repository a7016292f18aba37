from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


@dataclass
class TransitionContext:
    """Carried through the post-transition effects of one complaint transition."""

    complaint: dict
    actor_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    outcomes: Dict[str, bool] = field(default_factory=dict)

    @property
    def complaint_id(self) -> str:
        return str(self.complaint["_id"])

    @property
    def failed(self) -> List[str]:
        return [name for name, ok in self.outcomes.items() if not ok]


Effect = Callable[[TransitionContext], Awaitable[None]]


async def run_effects(ctx: TransitionContext, effects: Sequence[Tuple[str, Effect]]) -> TransitionContext:
    """
    Run effects in the given order. A failing effect is logged and
    recorded in `ctx.outcomes`; the remaining effects still run.
    """
    for name, effect in effects:
        try:
            await effect(ctx)
        except Exception:
            logger.exception("Post-transition effect %r failed for complaint %s", name, ctx.complaint_id)
            ctx.outcomes[name] = False
        else:
            ctx.outcomes[name] = True
    return ctx
