"""Action and binding tables behind the keymap resolver."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from vimterp.runtime.telemetry import SpanHandle, span

from .models import ActionRef, Binding, KeySequence

# (mode, key signature) -> ids of the bindings typed with those keys
_IndexKey = Tuple[str, str]


@dataclass(slots=True)
class RegistryStats:
    action_count: int
    binding_count: int
    modes: tuple[str, ...]


class KeymapConflictError(RuntimeError):
    """A binding would answer the same keys as another one in the same state."""

    def __init__(self, binding: Binding, conflicts: Iterable[Binding]):
        self.binding = binding
        self.conflicts = tuple(conflicts)
        names = ", ".join(conflict.id for conflict in self.conflicts)
        super().__init__(f"Binding '{binding.id}' collides with: {names}")


class RegistryFrozenError(RuntimeError):
    """The registry was frozen after startup and no longer takes changes."""


def _overlapping(left: Binding, right: Binding) -> bool:
    """Whether both bindings can be active under the same flags.

    Unconditional bindings overlap each other. A conditional binding never
    shadows an unconditional one; two conditional ones overlap only when
    their clauses agree exactly.
    """

    if not (left.when or right.when):
        return True
    if not (left.when and right.when):
        return False
    return left.when_map == right.when_map


class KeymapRegistry:
    """Actions by id and the bindings that reach them, per mode.

    A session fills the registry at startup and freezes it; after that only
    sequence timeouts can change. Every change to the bindings bumps
    ``revision()`` so resolvers know to rebuild their tries.
    """

    def __init__(self, *, logger_name: str | None = None) -> None:
        self._actions: Dict[str, ActionRef] = {}
        self._bindings: Dict[str, Binding] = {}
        self._index: Dict[_IndexKey, Set[str]] = {}
        self._logger_name = logger_name
        self._revision = 0
        self._frozen = False

    # -- state -------------------------------------------------------------------

    def revision(self) -> int:
        return self._revision

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        self._frozen = True

    def stats(self) -> RegistryStats:
        modes = sorted({binding.mode for binding in self._bindings.values()})
        return RegistryStats(
            action_count=len(self._actions),
            binding_count=len(self._bindings),
            modes=tuple(modes),
        )

    # -- lookup ------------------------------------------------------------------

    def get_action(self, action_id: str) -> ActionRef:
        if action_id not in self._actions:
            raise KeyError(f"Unknown action '{action_id}'")
        return self._actions[action_id]

    def get_binding(self, binding_id: str) -> Binding:
        if binding_id not in self._bindings:
            raise KeyError(f"Unknown binding '{binding_id}'")
        return self._bindings[binding_id]

    def iter_bindings(self, mode: Optional[str] = None) -> Iterator[Binding]:
        for binding in list(self._bindings.values()):
            if mode is None or binding.mode == mode:
                yield binding

    def detect_conflicts(
        self, binding: Binding, *, ignore: Sequence[str] | None = None
    ) -> List[Binding]:
        skipped = set(ignore or ()) | {binding.id}
        same_keys = self._index.get((binding.mode, binding.key_signature), set())
        return [
            self._bindings[other_id]
            for other_id in sorted(same_keys - skipped)
            if _overlapping(binding, self._bindings[other_id])
        ]

    # -- changes -----------------------------------------------------------------

    @contextmanager
    def _change(self, what: str, **metadata: object) -> Iterator[SpanHandle]:
        if self._frozen:
            raise RegistryFrozenError(f"Keymap registry is frozen; rejected {what}")
        with span(
            f"keymaps::{what}",
            logger_name=self._logger_name,
            component="keymaps",
            metadata=metadata,
        ) as handle:
            yield handle

    def register_action(self, action: ActionRef, *, replace: bool = False) -> ActionRef:
        with self._change("register_action", action_id=action.id):
            if action.id in self._actions and not replace:
                raise ValueError(f"Action '{action.id}' already registered")
            self._actions[action.id] = action
        return action

    def register_binding(self, binding: Binding, *, replace: bool = False) -> Binding:
        with self._change(
            "register_binding", binding_id=binding.id, mode=binding.mode
        ) as handle:
            self._require_action(binding, handle)
            conflicts = self.detect_conflicts(binding)
            if conflicts and not replace:
                handle.add_metadata("conflicts", [c.id for c in conflicts])
                raise KeymapConflictError(binding, conflicts)
            if binding.id in self._bindings and not replace:
                raise ValueError(f"Binding id '{binding.id}' already registered")
            for stale in conflicts:
                self._drop(stale)
            if binding.id in self._bindings:
                self._drop(self._bindings[binding.id])
            self._store(binding)
        return binding

    def unregister_binding(self, binding_id: str) -> Optional[Binding]:
        with self._change("unregister_binding", binding_id=binding_id):
            binding = self._bindings.get(binding_id)
            if binding is not None:
                self._drop(binding)
        return binding

    def update_binding(self, binding_id: str, **changes: object) -> Binding:
        with self._change("update_binding", binding_id=binding_id) as handle:
            current = self.get_binding(binding_id)
            updated = replace(current, **changes)
            self._require_action(updated, handle)
            conflicts = self.detect_conflicts(updated)
            if conflicts:
                handle.add_metadata("conflicts", [c.id for c in conflicts])
                raise KeymapConflictError(updated, conflicts)
            self._drop(current)
            self._store(updated)
        return updated

    def override_sequence_timeouts(
        self,
        *,
        timeout_ms: int,
        mode: Optional[str] = None,
        binding_ids: Optional[Iterable[str]] = None,
    ) -> None:
        """Retune pending-sequence timeouts; allowed on a frozen registry."""

        if timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")
        if binding_ids is None:
            targets = list(self.iter_bindings(mode))
        else:
            targets = [self.get_binding(binding_id) for binding_id in binding_ids]
        for binding in targets:
            sequence = KeySequence(binding.sequence.strokes, timeout_ms=timeout_ms)
            self._bindings[binding.id] = replace(binding, sequence=sequence)
        if targets:
            self._revision += 1

    # -- internals ---------------------------------------------------------------

    def _require_action(self, binding: Binding, handle: SpanHandle) -> None:
        if binding.action_id not in self._actions:
            handle.add_metadata("missing_action", binding.action_id)
            raise KeyError(
                f"Binding '{binding.id}' references unknown action "
                f"'{binding.action_id}'"
            )

    def _store(self, binding: Binding) -> None:
        self._bindings[binding.id] = binding
        key = (binding.mode, binding.key_signature)
        self._index.setdefault(key, set()).add(binding.id)
        self._revision += 1

    def _drop(self, binding: Binding) -> None:
        self._bindings.pop(binding.id, None)
        key = (binding.mode, binding.key_signature)
        bucket = self._index.get(key)
        if bucket is not None:
            bucket.discard(binding.id)
            if not bucket:
                del self._index[key]
        self._revision += 1


__all__ = [
    "KeymapConflictError",
    "KeymapRegistry",
    "RegistryFrozenError",
    "RegistryStats",
]
