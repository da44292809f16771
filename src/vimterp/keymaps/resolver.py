"""Resolve typed key tokens against the bindings of one mode."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Literal, Mapping, Optional, Sequence

from vimterp.runtime.telemetry import span

from .models import ActionRef, Binding
from .registry import KeymapRegistry


@dataclass(slots=True)
class _Node:
    bindings: List[Binding] = field(default_factory=list)
    children: Dict[str, "_Node"] = field(default_factory=dict)

    def below(self) -> Iterator[Binding]:
        """Bindings that need more keys than this node has seen."""

        for child in self.children.values():
            yield from child.bindings
            yield from child.below()


def _build(bindings: Iterable[Binding]) -> _Node:
    root = _Node()
    for binding in bindings:
        node = root
        for token in binding.sequence.tokens:
            node = node.children.setdefault(token, _Node())
        node.bindings.append(binding)
    return root


@dataclass(frozen=True, slots=True)
class ResolutionMatch:
    binding: Binding
    action: ActionRef


@dataclass(frozen=True, slots=True)
class ResolutionResult:
    """What the typed tokens amount to.

    ``pending`` means a longer binding is still reachable; ``match`` may then
    hold the complete binding to fall back on if no more keys arrive.
    """

    status: Literal["match", "pending", "miss"]
    match: Optional[ResolutionMatch] = None
    consumed: int = 0
    next_expected: tuple[str, ...] = ()
    timeout_ms: Optional[int] = None


class KeymapResolver:
    """Longest-match lookup over a per-mode trie.

    Tries are rebuilt lazily whenever the registry revision changes. Only
    bindings whose ``when`` clauses hold under the given flags take part,
    both as matches and as reasons to keep waiting.
    """

    def __init__(
        self, registry: KeymapRegistry, *, logger_name: str | None = None
    ) -> None:
        self._registry = registry
        self._logger_name = logger_name
        self._tries: Dict[str, tuple[int, _Node]] = {}

    def resolve(
        self,
        mode: str,
        tokens: Sequence[str],
        *,
        context: Optional[Mapping[str, bool]] = None,
    ) -> ResolutionResult:
        flags = context or {}
        typed = tuple(tokens)
        with span(
            "keymaps::resolve",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"mode": mode, "keys": " ".join(typed)},
        ) as handle:
            node: Optional[_Node] = self._trie(mode)
            for token in typed:
                node = node.children.get(token)
                if node is None:
                    break
            if node is None:
                result = ResolutionResult(status="miss")
            else:
                result = self._judge(node, flags, len(typed))
            handle.add_metadata("status", result.status)
            if result.match is not None:
                handle.add_metadata("binding_id", result.match.binding.id)
            return result

    def reset(self, mode: Optional[str] = None) -> None:
        if mode is None:
            self._tries.clear()
        else:
            self._tries.pop(mode, None)

    def _trie(self, mode: str) -> _Node:
        revision = self._registry.revision()
        cached = self._tries.get(mode)
        if cached is None or cached[0] != revision:
            cached = (revision, _build(self._registry.iter_bindings(mode)))
            self._tries[mode] = cached
        return cached[1]

    def _judge(
        self, node: _Node, flags: Mapping[str, bool], depth: int
    ) -> ResolutionResult:
        match = self._best(node.bindings, flags)
        waiting = [binding for binding in node.below() if binding.allows(flags)]
        if waiting:
            upcoming = {binding.sequence.tokens[depth] for binding in waiting}
            return ResolutionResult(
                status="pending",
                match=match,
                consumed=depth,
                next_expected=tuple(sorted(upcoming)),
                timeout_ms=min(b.sequence.timeout_ms for b in waiting),
            )
        if match is not None:
            return ResolutionResult(status="match", match=match, consumed=depth)
        return ResolutionResult(status="miss", consumed=depth)

    def _best(
        self, bindings: Sequence[Binding], flags: Mapping[str, bool]
    ) -> Optional[ResolutionMatch]:
        allowed = [binding for binding in bindings if binding.allows(flags)]
        if not allowed:
            return None
        winner = min(allowed, key=lambda b: (-b.priority, b.id))
        return ResolutionMatch(
            binding=winner, action=self._registry.get_action(winner.action_id)
        )


__all__ = [
    "KeymapResolver",
    "ResolutionMatch",
    "ResolutionResult",
]
