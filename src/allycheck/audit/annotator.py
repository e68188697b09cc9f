"""
Optional AI Annotator -- plain-language explanations for the top issues.

Only the first `limit` prioritized violations are explained. Calls run in
parallel, each in isolation: one failure leaves that item unannotated and
nothing else. Output order always equals input order, whatever order the
calls complete in.

With no explainer configured (no AI credential) this is an identity pass.
"""

import asyncio
import logging
from typing import Protocol, runtime_checkable

from .models import Annotation, EnrichedViolation, Outcome

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 5


@runtime_checkable
class Explainer(Protocol):
    async def explain_issue(self, violation: EnrichedViolation) -> str: ...


class Annotator:
    """
    Usage:
        annotator = Annotator(explainer=assistant, limit=5)
        annotations = await annotator.annotate(prioritized)
    """

    def __init__(self, explainer: Explainer | None = None, limit: int = DEFAULT_LIMIT):
        self._explainer = explainer
        self._limit = max(0, limit)

    @property
    def enabled(self) -> bool:
        return self._explainer is not None

    async def annotate(
        self, prioritized: list[EnrichedViolation], request_id: str = ""
    ) -> list[Annotation]:
        if not self.enabled or not prioritized:
            return [
                Annotation(violation=v, explanation=Outcome.unavailable("disabled"))
                for v in prioritized
            ]

        head = prioritized[: self._limit]
        tail = prioritized[self._limit :]
        logger.info(
            f"[Annotator] {request_id}: explaining top {len(head)} of "
            f"{len(prioritized)} violations"
        )

        results = await asyncio.gather(
            *[self._explainer.explain_issue(v) for v in head],
            return_exceptions=True,
        )

        annotations = []
        for violation, result in zip(head, results):
            if isinstance(result, BaseException):
                logger.debug(
                    f"[Annotator] {request_id}: explanation skipped for "
                    f"{violation.id}: {type(result).__name__}"
                )
                outcome = Outcome.unavailable(type(result).__name__)
            elif not result or not str(result).strip():
                outcome = Outcome.unavailable("empty explanation")
            else:
                outcome = Outcome.ok(str(result).strip())
            annotations.append(Annotation(violation=violation, explanation=outcome))

        annotations.extend(
            Annotation(violation=v, explanation=Outcome.unavailable("beyond limit"))
            for v in tail
        )
        return annotations
