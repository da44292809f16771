from __future__ import annotations

import pytest

from vimterp.keymaps import (
    ActionRef,
    Binding,
    KeySequence,
    KeyStroke,
    KeymapConflictError,
    KeymapRegistry,
    KeymapResolver,
    RegistryFrozenError,
    WhenClause,
    load_default_keymaps,
)


def noop(*args, **kwargs) -> None:
    return None


def bind(
    binding_id: str,
    keys: str = "z z",
    *,
    action_id: str = "test.zz",
    mode: str = "normal",
    when: tuple[str, ...] = (),
    priority: int = 0,
    timeout_ms: int = 1000,
) -> Binding:
    return Binding(
        id=binding_id,
        mode=mode,
        sequence=KeySequence.parse(keys, timeout_ms=timeout_ms),
        action_id=action_id,
        when=tuple(WhenClause.parse(expr) for expr in when),
        priority=priority,
    )


@pytest.fixture
def registry() -> KeymapRegistry:
    registry = KeymapRegistry()
    for action_id in ("test.zz", "test.z", "test.zx", "test.panel"):
        registry.register_action(ActionRef(id=action_id, handler=noop))
    return registry


@pytest.fixture
def resolver(registry: KeymapRegistry) -> KeymapResolver:
    return KeymapResolver(registry)


@pytest.fixture
def defaults() -> KeymapRegistry:
    registry = KeymapRegistry()
    load_default_keymaps(registry)
    return registry


# -- models -------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("token", "key", "modifiers"),
    [
        ("x", "x", ()),
        ("+", "+", ()),
        ("ctrl+v", "v", ("ctrl",)),
        ("shift+ctrl+RIGHT", "RIGHT", ("ctrl", "shift")),
    ],
)
def test_keystroke_parse(token: str, key: str, modifiers: tuple[str, ...]) -> None:
    stroke = KeyStroke.parse(token)

    assert (stroke.key, stroke.modifiers) == (key, modifiers)


def test_keystroke_token_orders_modifiers() -> None:
    assert KeyStroke("h", ("Shift", "ctrl")).token == "ctrl+shift+h"


def test_sequence_rejects_empty_input() -> None:
    with pytest.raises(ValueError):
        KeySequence.from_strings()


def test_when_clause_negation() -> None:
    clause = WhenClause.parse("!startsel")

    assert clause.flag == "startsel"
    assert clause.evaluate({}) is True
    assert clause.evaluate({"startsel": True}) is False
    with pytest.raises(ValueError):
        WhenClause.parse("!")


def test_action_ref_metadata_is_read_only() -> None:
    action = ActionRef(id="a", handler=noop, metadata={"argument": "char"})

    assert action.wants_char
    assert action.kind == "action"
    with pytest.raises(TypeError):
        action.metadata["kind"] = "motion"  # type: ignore[index]


# -- registry -----------------------------------------------------------------------


def test_same_keys_without_conditions_collide(registry: KeymapRegistry) -> None:
    registry.register_binding(bind("normal.zz"))

    with pytest.raises(KeymapConflictError) as excinfo:
        registry.register_binding(bind("normal.zz.again"))

    assert [b.id for b in excinfo.value.conflicts] == ["normal.zz"]


def test_conditional_bindings_coexist(registry: KeymapRegistry) -> None:
    registry.register_binding(bind("plain"))
    registry.register_binding(bind("open", when=("panel",)))
    registry.register_binding(bind("closed", when=("!panel",)))

    assert registry.stats().binding_count == 3
    assert registry.stats().modes == ("normal",)


def test_replace_swaps_the_conflicting_binding(registry: KeymapRegistry) -> None:
    registry.register_binding(bind("old"))
    newer = bind("new", action_id="test.z")

    registry.register_binding(newer, replace=True)

    assert list(registry.iter_bindings("normal")) == [newer]


def test_binding_needs_a_known_action(registry: KeymapRegistry) -> None:
    with pytest.raises(KeyError):
        registry.register_binding(bind("ghost", action_id="test.missing"))


def test_update_and_unregister_bump_revision(registry: KeymapRegistry) -> None:
    registry.register_binding(bind("normal.zz"))
    start = registry.revision()

    updated = registry.update_binding(
        "normal.zz", sequence=KeySequence.parse("z x"), description="moved"
    )
    removed = registry.unregister_binding("normal.zz")

    assert updated.sequence.tokens == ("z", "x")
    assert removed == updated
    assert registry.revision() > start
    assert registry.unregister_binding("normal.zz") is None


def test_frozen_registry_only_retunes_timeouts(defaults: KeymapRegistry) -> None:
    defaults.freeze()

    with pytest.raises(RegistryFrozenError):
        defaults.unregister_binding("normal.enter_insert")
    before = defaults.revision()
    defaults.override_sequence_timeouts(timeout_ms=250, mode="insert")

    assert defaults.get_binding("insert.exit_to_normal").sequence.timeout_ms == 250
    assert defaults.get_binding("normal.enter_insert").sequence.timeout_ms == 1000
    assert defaults.revision() == before + 1


def test_timeout_override_rejects_non_positive(defaults: KeymapRegistry) -> None:
    with pytest.raises(ValueError):
        defaults.override_sequence_timeouts(timeout_ms=0)


def test_timeout_override_for_named_bindings(defaults: KeymapRegistry) -> None:
    defaults.override_sequence_timeouts(
        timeout_ms=1800, binding_ids=["normal.enter_select"]
    )

    assert defaults.get_binding("normal.enter_select").sequence.timeout_ms == 1800
    assert defaults.get_binding("normal.undo").sequence.timeout_ms == 1000


# -- defaults -----------------------------------------------------------------------


def test_defaults_number_repeated_actions(defaults: KeymapRegistry) -> None:
    assert defaults.get_binding("visual.delete_selection").sequence.tokens == ("d",)
    assert defaults.get_binding("visual.delete_selection.2").sequence.tokens == ("x",)
    assert defaults.get_binding("normal.enter_select_block").sequence.tokens == (
        "g",
        "ctrl+h",
    )


def test_defaults_filters_and_overrides() -> None:
    registry = KeymapRegistry()
    custom = Binding(
        id="normal.enter_insert",
        mode="normal",
        sequence=KeySequence.from_strings("a"),
        action_id="core.enter_insert",
    )

    load_default_keymaps(
        registry,
        include_actions=("core.enter_insert",),
        include_bindings=("normal.enter_insert",),
        per_mode_overrides={"normal": (custom,)},
        default_sequence_timeout_ms=1500,
    )

    binding = registry.get_binding("normal.enter_insert")
    assert registry.stats().binding_count == 1
    assert binding.sequence.tokens == ("a",)


def test_defaults_global_timeout() -> None:
    registry = KeymapRegistry()

    load_default_keymaps(registry, default_sequence_timeout_ms=1500)

    assert registry.get_binding("normal.enter_insert").sequence.timeout_ms == 1500


# -- resolver -----------------------------------------------------------------------


def test_exact_match(registry: KeymapRegistry, resolver: KeymapResolver) -> None:
    registry.register_binding(bind("normal.zz"))

    result = resolver.resolve("normal", ("z", "z"))

    assert result.status == "match"
    assert result.consumed == 2
    assert result.match.binding.id == "normal.zz"
    assert result.match.action.id == "test.zz"


def test_prefix_waits_with_timeout_hint(
    registry: KeymapRegistry, resolver: KeymapResolver
) -> None:
    registry.register_binding(bind("slow", "z z", timeout_ms=1500))
    registry.register_binding(bind("fast", "z x", action_id="test.zx", timeout_ms=700))

    result = resolver.resolve("normal", ("z",))

    assert result.status == "pending"
    assert result.match is None
    assert result.next_expected == ("x", "z")
    assert result.timeout_ms == 700


def test_complete_prefix_is_kept_as_fallback(
    registry: KeymapRegistry, resolver: KeymapResolver
) -> None:
    registry.register_binding(bind("short", "z", action_id="test.z"))
    registry.register_binding(bind("long", "z x", action_id="test.zx"))

    result = resolver.resolve("normal", ("z",))

    assert result.status == "pending"
    assert result.match.binding.id == "short"


def test_unknown_keys_miss(registry: KeymapRegistry, resolver: KeymapResolver) -> None:
    registry.register_binding(bind("normal.zz"))

    assert resolver.resolve("normal", ("q",)).status == "miss"
    assert resolver.resolve("visual", ("z",)).status == "miss"


def test_when_clauses_gate_matches_and_waiting(
    registry: KeymapRegistry, resolver: KeymapResolver
) -> None:
    registry.register_binding(bind("short", "z", action_id="test.z"))
    registry.register_binding(
        bind("panel", "z x", action_id="test.panel", when=("panel",))
    )

    closed = resolver.resolve("normal", ("z",), context={})
    opened = resolver.resolve("normal", ("z",), context={"panel": True})

    assert closed.status == "match"
    assert opened.status == "pending"
    assert resolver.resolve("normal", ("z", "x")).status == "miss"


def test_priority_breaks_ties(
    registry: KeymapRegistry, resolver: KeymapResolver
) -> None:
    registry.register_binding(bind("low", action_id="test.zz"))
    registry.register_binding(
        bind("high", action_id="test.panel", when=("panel",), priority=5)
    )

    result = resolver.resolve("normal", ("z", "z"), context={"panel": True})

    assert result.match.binding.id == "high"


def test_trie_follows_registry_changes(
    registry: KeymapRegistry, resolver: KeymapResolver
) -> None:
    assert resolver.resolve("normal", ("z",)).status == "miss"

    registry.register_binding(bind("normal.z", "z", action_id="test.z"))

    assert resolver.resolve("normal", ("z",)).status == "match"
