"""Ordered multi-caret execution with per-caret failure records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from vimterp.buffer import Buffer, BufferValidationError, Cursor
from vimterp.runtime import telemetry

from .motions import MotionError


class CaretFailure(RuntimeError):
    """Raised by a per-caret step that cannot complete at that caret."""


@dataclass(frozen=True, slots=True)
class CaretResult:
    caret: Cursor
    ok: bool
    position: Cursor
    reason: Optional[str] = None


@dataclass(slots=True)
class CaretBatch:
    """Record of one command applied at every caret, in document order."""

    label: str
    results: List[CaretResult] = field(default_factory=list)

    @property
    def failures(self) -> Tuple[CaretResult, ...]:
        return tuple(result for result in self.results if not result.ok)

    @property
    def all_ok(self) -> bool:
        return all(result.ok for result in self.results)

    @property
    def any_ok(self) -> bool:
        return any(result.ok for result in self.results)

    @property
    def positions(self) -> List[Cursor]:
        return [result.position for result in self.results]

    def first_failure(self) -> Optional[str]:
        failures = self.failures
        return failures[0].reason if failures else None


CaretStep = Callable[[Cursor], Cursor]


def for_each_caret(
    buffer: Buffer,
    step: CaretStep,
    *,
    label: str,
    carets: Optional[Tuple[Cursor, ...]] = None,
) -> CaretBatch:
    """Run ``step`` at every caret, first to last.

    ``step`` receives the caret's current position (already shifted by
    edits made at earlier carets) and returns the caret's new position. A
    failing caret keeps its place and is recorded; earlier and later carets
    are not rolled back. Edits of the whole batch undo as one step.
    """

    batch = CaretBatch(label=label)
    ordered = tuple(sorted(carets if carets is not None else buffer.state.carets))
    offsets = [buffer.offset_for(*caret) for caret in ordered]
    with telemetry.span(
        f"carets::{label}", component="carets", metadata={"carets": len(ordered)}
    ) as handle, buffer.group(label):
        for index, caret in enumerate(ordered):
            before_length = len(buffer.text)
            position = buffer.cursor_for(offsets[index])
            try:
                moved = step(position)
            except (CaretFailure, MotionError, BufferValidationError) as exc:
                batch.results.append(
                    CaretResult(
                        caret=caret, ok=False, position=position, reason=str(exc)
                    )
                )
                continue
            delta = len(buffer.text) - before_length
            if delta:
                for later in range(index + 1, len(offsets)):
                    offsets[later] += delta
            batch.results.append(CaretResult(caret=caret, ok=True, position=moved))
        if batch.failures:
            handle.add_metadata("failures", len(batch.failures))
    final = [buffer.clamp(position) for position in batch.positions]
    if final:
        buffer.state.set_carets(final)
    return batch


__all__ = ["CaretBatch", "CaretFailure", "CaretResult", "CaretStep", "for_each_caret"]
