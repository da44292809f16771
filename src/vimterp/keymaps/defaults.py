"""Built-in keymaps that seed each mode with sensible defaults."""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Dict, Iterable, Mapping, Sequence

from vimterp.actions import MOTIONS, OPERATORS
from vimterp.actions import command as command_actions
from vimterp.actions import core as core_actions
from vimterp.actions import insert as insert_actions
from vimterp.actions import motions as motion_actions
from vimterp.actions import visual as visual_actions

from .models import ActionRef, Binding, KeySequence
from .registry import KeymapRegistry


def _motion_actions() -> tuple[ActionRef, ...]:
    actions = []
    for spec in MOTIONS.values():
        metadata: Dict[str, object] = {"kind": "motion"}
        if spec.argument:
            metadata["argument"] = spec.argument
        if spec.arrow:
            metadata["arrow"] = True
        actions.append(
            ActionRef(
                id=spec.id,
                handler=spec.handler,
                description=spec.description,
                metadata=metadata,
            )
        )
    return tuple(actions)


_SHIFTED_ARROWS = (
    ("LEFT", "motion.shift_left", motion_actions.left),
    ("RIGHT", "motion.shift_right", motion_actions.right),
    ("UP", "motion.shift_up", motion_actions.up),
    ("DOWN", "motion.shift_down", motion_actions.down),
)


def _shifted_actions() -> tuple[ActionRef, ...]:
    return tuple(
        ActionRef(
            id=action_id,
            handler=handler,
            description=f"Shifted {key.lower()} arrow",
            metadata={"kind": "motion", "arrow": True, "shifted": True},
        )
        for key, action_id, handler in _SHIFTED_ARROWS
    )


def _operator_actions() -> tuple[ActionRef, ...]:
    return tuple(
        ActionRef(
            id=spec.id,
            handler=spec.handler,
            description=spec.description,
            metadata={"kind": "operator"},
        )
        for spec in OPERATORS.values()
    )


_PLAIN_ACTIONS: tuple[tuple[str, Callable[..., object], str], ...] = (
    ("core.enter_insert", core_actions.enter_insert_mode, "Enter insert mode"),
    ("core.append", core_actions.append_after_cursor, "Append after the cursor"),
    ("core.insert_line_start", core_actions.insert_line_start, "Insert at line start"),
    ("core.append_line_end", core_actions.append_line_end, "Append at line end"),
    ("core.open_below", core_actions.open_line_below, "Open a line below"),
    ("core.open_above", core_actions.open_line_above, "Open a line above"),
    ("core.enter_replace", core_actions.enter_replace_mode, "Enter replace mode"),
    ("core.exit_to_normal", core_actions.exit_to_normal_mode, "Return to normal mode"),
    ("core.enter_visual", core_actions.enter_visual_mode, "Enter visual mode"),
    ("core.enter_visual_line", core_actions.enter_visual_line_mode, "Visual line mode"),
    (
        "core.enter_visual_block",
        core_actions.enter_visual_block_mode,
        "Enter visual block mode",
    ),
    ("core.enter_select", core_actions.enter_select_mode, "Enter select mode"),
    ("core.enter_select_line", core_actions.enter_select_line_mode, "Select line mode"),
    (
        "core.enter_select_block",
        core_actions.enter_select_block_mode,
        "Enter select block mode",
    ),
    ("core.enter_command", core_actions.enter_command_mode, "Enter command-line mode"),
    ("core.undo", core_actions.undo, "Undo"),
    ("core.redo", core_actions.redo, "Redo"),
    ("core.delete_char", core_actions.delete_char, "Delete under the cursor"),
    ("core.delete_char_before", core_actions.delete_char_before, "Delete backwards"),
    ("core.delete_to_line_end", core_actions.delete_to_line_end, "Delete to line end"),
    ("core.change_to_line_end", core_actions.change_to_line_end, "Change to line end"),
    ("core.yank_line", core_actions.yank_line, "Yank lines"),
    ("core.put_after", core_actions.put_after, "Put after the cursor"),
    ("core.put_before", core_actions.put_before, "Put before the cursor"),
    ("core.join", core_actions.join, "Join lines"),
    ("core.toggle_case", core_actions.toggle_case, "Toggle case under the cursor"),
    ("visual.swap_anchor", visual_actions.swap_anchor, "Swap selection anchor"),
    ("visual.swap_block_corner", visual_actions.swap_block_corner, "Swap block corner"),
    ("visual.toggle_char", visual_actions.toggle_visual_char, "Characterwise visual"),
    ("visual.toggle_line", visual_actions.toggle_visual_line, "Linewise visual"),
    ("visual.toggle_block", visual_actions.toggle_visual_block, "Blockwise visual"),
    ("visual.to_select", visual_actions.visual_to_select, "Switch to select mode"),
    ("visual.command_line", visual_actions.open_command_line, "Ex on selection"),
    ("visual.yank_selection", visual_actions.yank_selection, "Yank selection"),
    ("visual.delete_selection", visual_actions.delete_selection, "Delete selection"),
    ("visual.change_selection", visual_actions.change_selection, "Change selection"),
    ("visual.shift_right", visual_actions.shift_right, "Shift selection right"),
    ("visual.shift_left", visual_actions.shift_left, "Shift selection left"),
    ("visual.toggle_case", visual_actions.toggle_case, "Toggle selection case"),
    ("visual.lower_case", visual_actions.lower_case, "Lowercase selection"),
    ("visual.upper_case", visual_actions.upper_case, "Uppercase selection"),
    ("visual.join", visual_actions.join_selection, "Join selected lines"),
    ("visual.put", visual_actions.put_over_selection, "Put over selection"),
    ("visual.block_insert", visual_actions.block_insert, "Insert along the selection"),
    ("select.delete", visual_actions.delete_select, "Delete the selection"),
    ("select.to_visual", visual_actions.select_to_visual, "Switch to visual mode"),
    ("insert.backspace", insert_actions.backspace, "Delete before the cursor"),
    ("insert.newline", insert_actions.newline, "Break the line"),
    ("insert.delete_forward", insert_actions.delete_forward, "Delete under cursor"),
    ("replace.backspace", insert_actions.replace_backspace, "Restore replaced text"),
    ("replace.newline", insert_actions.replace_newline, "Break the line"),
    ("command.submit_line", command_actions.submit_command_line, "Run command line"),
    ("command.cancel", command_actions.cancel_command_line, "Abandon command line"),
    ("command.delete_before", command_actions.delete_before, "Delete last character"),
    ("command.clear_line", command_actions.clear_line, "Clear the command line"),
    ("command.history_previous", command_actions.history_previous, "Older history"),
    ("command.history_next", command_actions.history_next, "Newer history"),
)

# actions that read one more character typed after their keys
_CHAR_ACTIONS: tuple[tuple[str, Callable[..., object], str], ...] = (
    ("core.replace_char", core_actions.replace_char, "Replace characters"),
    ("core.set_mark", core_actions.set_mark, "Set a mark"),
    ("insert.insert_register", insert_actions.insert_register, "Insert a register"),
)

DEFAULT_ACTIONS: tuple[ActionRef, ...] = (
    _motion_actions()
    + _shifted_actions()
    + _operator_actions()
    + tuple(
        ActionRef(id=action_id, handler=handler, description=description)
        for action_id, handler, description in _PLAIN_ACTIONS
    )
    + tuple(
        ActionRef(
            id=action_id,
            handler=handler,
            description=description,
            metadata={"argument": "char"},
        )
        for action_id, handler, description in _CHAR_ACTIONS
    )
)

_DESCRIPTIONS = {action.id: action.description for action in DEFAULT_ACTIONS}


def _motion_keys(*, arrows_only: bool = False) -> tuple[tuple[str, str], ...]:
    return tuple(
        (" ".join(spec.keys), spec.id)
        for spec in MOTIONS.values()
        if spec.arrow or not arrows_only
    )


_SHIFTED_KEYS = tuple(
    (f"shift+{key}", action_id) for key, action_id, _ in _SHIFTED_ARROWS
)

_OPERATOR_KEYS = tuple((" ".join(spec.keys), spec.id) for spec in OPERATORS.values())

_MODE_KEYS: Mapping[str, tuple[tuple[str, str], ...]] = {
    "normal": (
        ("ESC", "core.exit_to_normal"),
        ("i", "core.enter_insert"),
        ("a", "core.append"),
        ("I", "core.insert_line_start"),
        ("A", "core.append_line_end"),
        ("o", "core.open_below"),
        ("O", "core.open_above"),
        ("R", "core.enter_replace"),
        ("v", "core.enter_visual"),
        ("V", "core.enter_visual_line"),
        ("ctrl+v", "core.enter_visual_block"),
        ("g h", "core.enter_select"),
        ("g H", "core.enter_select_line"),
        ("g ctrl+h", "core.enter_select_block"),
        (":", "core.enter_command"),
        ("u", "core.undo"),
        ("ctrl+r", "core.redo"),
        ("x", "core.delete_char"),
        ("DELETE", "core.delete_char"),
        ("X", "core.delete_char_before"),
        ("D", "core.delete_to_line_end"),
        ("C", "core.change_to_line_end"),
        ("Y", "core.yank_line"),
        ("p", "core.put_after"),
        ("P", "core.put_before"),
        ("J", "core.join"),
        ("r", "core.replace_char"),
        ("~", "core.toggle_case"),
        ("m", "core.set_mark"),
    )
    + _OPERATOR_KEYS
    + _motion_keys()
    + _SHIFTED_KEYS,
    "operator_pending": (
        ("ESC", "core.exit_to_normal"),
        ("~", "operator.toggle_case"),
        ("u", "operator.lower_case"),
        ("U", "operator.upper_case"),
    )
    + _OPERATOR_KEYS
    + _motion_keys(),
    "visual": (
        ("ESC", "core.exit_to_normal"),
        ("o", "visual.swap_anchor"),
        ("O", "visual.swap_block_corner"),
        ("v", "visual.toggle_char"),
        ("V", "visual.toggle_line"),
        ("ctrl+v", "visual.toggle_block"),
        ("ctrl+g", "visual.to_select"),
        (":", "visual.command_line"),
        ("y", "visual.yank_selection"),
        ("Y", "visual.yank_selection"),
        ("d", "visual.delete_selection"),
        ("x", "visual.delete_selection"),
        ("DELETE", "visual.delete_selection"),
        ("D", "visual.delete_selection"),
        ("X", "visual.delete_selection"),
        ("c", "visual.change_selection"),
        ("s", "visual.change_selection"),
        ("C", "visual.change_selection"),
        ("S", "visual.change_selection"),
        ("R", "visual.change_selection"),
        (">", "visual.shift_right"),
        ("<", "visual.shift_left"),
        ("~", "visual.toggle_case"),
        ("u", "visual.lower_case"),
        ("U", "visual.upper_case"),
        ("J", "visual.join"),
        ("p", "visual.put"),
        ("P", "visual.put"),
        ("I", "visual.block_insert"),
        ("A", "visual.block_insert"),
    )
    + _motion_keys()
    + _SHIFTED_KEYS,
    "select": (
        ("ESC", "core.exit_to_normal"),
        ("BACKSPACE", "select.delete"),
        ("ctrl+h", "select.delete"),
        ("DELETE", "select.delete"),
        ("ctrl+g", "select.to_visual"),
    )
    + _motion_keys(arrows_only=True)
    + _SHIFTED_KEYS,
    "insert": (
        ("ESC", "core.exit_to_normal"),
        ("BACKSPACE", "insert.backspace"),
        ("ctrl+h", "insert.backspace"),
        ("ENTER", "insert.newline"),
        ("DELETE", "insert.delete_forward"),
        ("ctrl+r", "insert.insert_register"),
    )
    + _motion_keys(arrows_only=True),
    "replace": (
        ("ESC", "core.exit_to_normal"),
        ("BACKSPACE", "replace.backspace"),
        ("ctrl+h", "replace.backspace"),
        ("ENTER", "replace.newline"),
        ("ctrl+r", "insert.insert_register"),
    )
    + _motion_keys(arrows_only=True),
    "command": (
        ("ESC", "command.cancel"),
        ("ENTER", "command.submit_line"),
        ("BACKSPACE", "command.delete_before"),
        ("ctrl+h", "command.delete_before"),
        ("ctrl+u", "command.clear_line"),
        ("UP", "command.history_previous"),
        ("DOWN", "command.history_next"),
    ),
}


def _tags(keys: str) -> tuple[str, ...]:
    if keys in {"LEFT", "RIGHT", "UP", "DOWN"}:
        return ("arrow",)
    if keys.startswith("shift+"):
        return ("arrow", "shifted")
    return ()


def _build_bindings() -> tuple[Binding, ...]:
    bindings = []
    for mode, table in _MODE_KEYS.items():
        seen: Dict[str, int] = {}
        for keys, action_id in table:
            name = action_id.split(".", 1)[1]
            seen[name] = seen.get(name, 0) + 1
            if seen[name] > 1:
                name = f"{name}.{seen[name]}"
            bindings.append(
                Binding(
                    id=f"{mode}.{name}",
                    mode=mode,
                    sequence=KeySequence.parse(keys),
                    action_id=action_id,
                    description=_DESCRIPTIONS[action_id],
                    tags=_tags(keys),
                    source="defaults",
                )
            )
    return tuple(bindings)


DEFAULT_BINDINGS: tuple[Binding, ...] = _build_bindings()


def load_default_keymaps(
    registry: KeymapRegistry,
    *,
    replace: bool = False,
    extra_bindings: Iterable[Binding] | None = None,
    default_sequence_timeout_ms: int | None = None,
    include_actions: Sequence[str] | None = None,
    exclude_actions: Sequence[str] | None = None,
    include_bindings: Sequence[str] | None = None,
    exclude_bindings: Sequence[str] | None = None,
    per_mode_overrides: Mapping[str, Iterable[Binding]] | None = None,
) -> None:
    """Register built-in actions and bindings for every mode."""

    allowed_actions = _build_filters(include_actions, exclude_actions)
    allowed_bindings = _build_filters(include_bindings, exclude_bindings)

    registered: set[str] = set()
    for action in DEFAULT_ACTIONS:
        if not _selected(action.id, allowed_actions):
            continue
        registry.register_action(action, replace=replace)
        registered.add(action.id)

    for binding in DEFAULT_BINDINGS:
        if binding.action_id not in registered:
            continue
        if not _selected(binding.id, allowed_bindings):
            continue
        registry.register_binding(
            _binding_with_timeout(binding, default_sequence_timeout_ms),
            replace=replace,
        )

    if extra_bindings:
        for binding in extra_bindings:
            registry.register_binding(binding, replace=replace)

    if per_mode_overrides:
        for mode, bindings in per_mode_overrides.items():
            for binding in bindings:
                if binding.mode != mode:
                    raise ValueError(
                        f"Override binding '{binding.id}' must target mode '{mode}'"
                    )
                registry.register_binding(binding, replace=True)


def _binding_with_timeout(binding: Binding, timeout_ms: int | None) -> Binding:
    if timeout_ms is None:
        return binding
    sequence = KeySequence(binding.sequence.strokes, timeout_ms=timeout_ms)
    return replace(binding, sequence=sequence)


def _build_filters(
    include: Sequence[str] | None, exclude: Sequence[str] | None
) -> tuple[set[str] | None, set[str]]:
    include_set = set(include) if include else None
    exclude_set = set(exclude or ())
    return include_set, exclude_set


def _selected(item_id: str, filters: tuple[set[str] | None, set[str]]) -> bool:
    include, exclude = filters
    if include is not None and item_id not in include:
        return False
    if item_id in exclude:
        return False
    return True


__all__ = ["DEFAULT_ACTIONS", "DEFAULT_BINDINGS", "load_default_keymaps"]
