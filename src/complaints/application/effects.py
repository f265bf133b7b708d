"""
Effect Chains
=============

Ordered side effects of a state-changing operation.

The first step is the primary write. If it fails, nothing else runs and the
error propagates. Every following step receives the primary result and is
run in order:

- best_effort: each step runs inside `isolate()` (a savepoint for SQL
  stores); a failure is logged, recorded in the report and skipped.
- transactional: the first failing step raises SideEffectException so the
  caller's session rolls back.
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncContextManager, Awaitable, Callable, List, Optional

from src.config import SideEffectMode
from src.core import SideEffectException
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def no_isolation():
    yield


@dataclass(frozen=True)
class EffectOutcome:
    """Result of one step."""
    step: str
    succeeded: bool
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {"step": self.step, "succeeded": self.succeeded, "error": self.error}


@dataclass
class EffectReport:
    """What happened to every step of a chain."""
    result: Any
    outcomes: List[EffectOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return all(o.succeeded for o in self.outcomes)

    @property
    def failed_steps(self) -> List[str]:
        return [o.step for o in self.outcomes if not o.succeeded]


class EffectChain:
    """
    Builder and runner for a primary write plus secondary effects.

    Usage:
        chain = EffectChain(mode=SideEffectMode.BEST_EFFORT)
        chain.primary("update_complaint", lambda: repo.update(complaint))
        chain.then("log_activity", lambda saved: activity.append(entry_for(saved)))
        report = await chain.run()
    """

    def __init__(
        self,
        mode: str = SideEffectMode.BEST_EFFORT,
        isolate: Optional[Callable[[], AsyncContextManager]] = None
    ):
        if mode not in (SideEffectMode.BEST_EFFORT, SideEffectMode.TRANSACTIONAL):
            raise ValueError(f"Unknown side effect mode: {mode}")
        self._mode = mode
        self._isolate = isolate or no_isolation
        self._primary: Optional[tuple[str, Callable[[], Awaitable[Any]]]] = None
        self._steps: List[tuple[str, Callable[[Any], Awaitable[Any]]]] = []

    @property
    def mode(self) -> str:
        return self._mode

    @property
    def step_names(self) -> List[str]:
        names = [self._primary[0]] if self._primary else []
        return names + [name for name, _ in self._steps]

    def primary(self, name: str, action: Callable[[], Awaitable[Any]]) -> "EffectChain":
        if self._primary is not None:
            raise ValueError("Primary step already set")
        self._primary = (name, action)
        return self

    def then(self, name: str, action: Callable[[Any], Awaitable[Any]]) -> "EffectChain":
        self._steps.append((name, action))
        return self

    async def run(self) -> EffectReport:
        """
        Execute the chain.

        Raises:
            Whatever the primary step raises
            SideEffectException: A secondary step failed in transactional mode
        """
        if self._primary is None:
            raise ValueError("EffectChain has no primary step")

        primary_name, primary_action = self._primary
        try:
            result = await primary_action()
        except Exception as e:
            logger.error(
                "Primary write failed, skipping side effects",
                extra={"step": primary_name, "error": str(e), "skipped": [n for n, _ in self._steps]}
            )
            raise

        report = EffectReport(result=result, outcomes=[EffectOutcome(primary_name, True)])

        for name, action in self._steps:
            if self._mode == SideEffectMode.TRANSACTIONAL:
                try:
                    await action(result)
                except Exception as e:
                    logger.error("Side effect failed, aborting", extra={"step": name, "error": str(e)})
                    raise SideEffectException(name, str(e)) from e
                report.outcomes.append(EffectOutcome(name, True))
                continue

            try:
                async with self._isolate():
                    await action(result)
            except Exception as e:
                logger.warning("Side effect failed, continuing", extra={"step": name, "error": str(e)})
                report.outcomes.append(EffectOutcome(name, False, str(e)))
            else:
                report.outcomes.append(EffectOutcome(name, True))

        return report
