"""
State machine tests for process_key.

Keys are fed the way curses.get_wch() delivers them: one-character strings
for text and ints for special keys.
"""

import curses
import datetime as dt

import pytest

import taskline
from taskline import Mode, PendingCommit, Session, TaskStore, process_key

ENTER = "\n"
ESC = "\x1b"
BACKSPACE = curses.KEY_BACKSPACE


def press(session, *keys, now=None):
    """Feed keys to the session; multi-character strings are typed one by one."""
    result = True
    for key in keys:
        chars = list(key) if isinstance(key, str) and len(key) > 1 else [key]
        for ch in chars:
            result = process_key(session, ch, now)
    return result


def snapshot(store):
    return [(t.description, t.completed, t.deadline) for t in store]


class TestNormalMode:
    def test_q_stops_the_loop(self, session):
        assert process_key(session, "q") is False

    def test_other_keys_continue(self, session):
        assert process_key(session, "z") is True
        assert process_key(session, curses.KEY_LEFT) is True
        assert session.mode is Mode.NORMAL

    def test_n_starts_input_with_empty_buffer(self, session):
        session.input = "stale"
        press(session, "n")
        assert session.mode is Mode.INPUT
        assert session.input == ""
        assert session.pending is PendingCommit.ADD

    def test_e_loads_selected_description(self, session):
        press(session, curses.KEY_DOWN, "e")
        assert session.mode is Mode.EDIT
        assert session.input == "call bank"
        assert session.pending is PendingCommit.EDIT

    def test_e_on_empty_store_is_ignored(self):
        session = Session()
        press(session, "e")
        assert session.mode is Mode.NORMAL

    def test_d_enters_delete_confirm(self, session):
        press(session, "d")
        assert session.mode is Mode.DELETE_CONFIRM

    def test_d_on_empty_store_is_ignored(self):
        session = Session()
        press(session, "d")
        assert session.mode is Mode.NORMAL

    def test_c_toggles_selected(self, session):
        press(session, "c")
        assert session.store.tasks[0].completed is True
        press(session, "c")
        assert session.store.tasks[0].completed is False

    def test_arrows_move_selection_with_saturation(self, session):
        press(session, curses.KEY_UP)
        assert session.store.selected == 0
        press(session, curses.KEY_DOWN, curses.KEY_DOWN, curses.KEY_DOWN)
        assert session.store.selected == 1
        press(session, curses.KEY_UP)
        assert session.store.selected == 0


class TestDeleteConfirm:
    def test_second_d_deletes(self, session):
        assert press(session, "d", "d") is True
        assert [t.description for t in session.store] == ["call bank"]
        assert session.mode is Mode.NORMAL

    @pytest.mark.parametrize("key", ["x", "q", ESC, ENTER, curses.KEY_DOWN])
    def test_any_other_key_cancels(self, session, key):
        before = snapshot(session.store)
        assert press(session, "d", key) is True
        assert snapshot(session.store) == before
        assert session.mode is Mode.NORMAL


class TestTextEntry:
    def test_typing_appends_including_command_letters(self, session):
        press(session, "n", "quit now")
        assert session.input == "quit now"
        assert session.mode is Mode.INPUT

    def test_backspace_removes_last_char(self, session):
        press(session, "n", "abc", BACKSPACE)
        assert session.input == "ab"
        press(session, "\x7f", "\b", "\x7f")
        assert session.input == ""

    def test_non_printable_keys_are_ignored(self, session):
        press(session, "n", "ab", curses.KEY_LEFT, "\t", ESC)
        assert session.input == "ab"
        assert session.mode is Mode.INPUT

    def test_enter_moves_to_deadline_input(self, session):
        press(session, "n", "buy milk", ENTER)
        assert session.mode is Mode.DEADLINE_INPUT
        assert session.temp_description == "buy milk"
        assert session.input == ""
        assert len(session.store) == 2


class TestDeadlineInput:
    def test_number_keys_choose_keyword(self, session):
        press(session, "n", "x", ENTER, "3")
        assert session.input == "This Week"
        press(session, "1")
        assert session.input == "Today"
        assert session.mode is Mode.DEADLINE_INPUT

    def test_add_flow_appends_task(self, session, now):
        press(session, "n", "buy milk", ENTER, "2", ENTER, now=now)
        assert session.mode is Mode.NORMAL
        task = session.store.tasks[-1]
        assert task.description == "buy milk"
        assert task.deadline == dt.datetime(2024, 3, 16)
        assert task.completed is False
        assert len(session.store) == 3

    def test_add_without_keyword_has_no_deadline(self, session, now):
        press(session, "n", "someday", ENTER, ENTER, now=now)
        assert session.store.tasks[-1].description == "someday"
        assert session.store.tasks[-1].deadline is None

    def test_edit_flow_updates_selected_task(self, session, now):
        press(session, "e", *[BACKSPACE] * len("write report"), "buy milk", ENTER, "1", ENTER, now=now)
        assert session.mode is Mode.NORMAL
        assert len(session.store) == 2
        task = session.store.tasks[0]
        assert task.description == "buy milk"
        assert task.deadline == dt.datetime(2024, 3, 15)
        assert session.store.tasks[1].description == "call bank"

    def test_edit_appends_to_existing_description(self, session, now):
        press(session, "e", " asap", ENTER, "4", ENTER, now=now)
        assert session.store.tasks[0].description == "write report asap"
        assert session.store.tasks[0].deadline == dt.datetime(2024, 3, 31)

    @pytest.mark.parametrize("start", ["n", "e"])
    @pytest.mark.parametrize("abandon", ["q", ESC])
    def test_abandon_leaves_store_unchanged(self, session, now, start, abandon):
        before = snapshot(session.store)
        assert press(session, start, "changed", ENTER, "2", abandon, now=now) is True
        assert snapshot(session.store) == before
        assert session.mode is Mode.NORMAL
        assert session.temp_description == ""
        assert session.pending is None

    def test_other_keys_are_ignored(self, session):
        press(session, "n", "x", ENTER, "z", "9", curses.KEY_UP)
        assert session.mode is Mode.DEADLINE_INPUT
        assert session.input == ""

    def test_pending_commit_is_cleared_after_add(self, session, now):
        press(session, "n", "x", ENTER, ENTER, now=now)
        assert session.pending is None
        assert session.input == ""


class TestCustomKeybinds:
    def test_config_keybinds_drive_normal_mode(self):
        config = taskline.default_config()
        config.keybinds["quit"] = ["x"]
        config.keybinds["down"] = ["j", curses.KEY_DOWN]
        store = TaskStore()
        store.add("a")
        store.add("b")
        session = Session(store=store, config=config)
        assert process_key(session, "q") is True
        press(session, "j")
        assert store.selected == 1
        assert process_key(session, "x") is False

    def test_rebound_quit_also_abandons_deadline_input(self, now):
        config = taskline.default_config()
        config.keybinds["quit"] = ["x"]
        store = TaskStore()
        store.add("a")
        session = Session(store=store, config=config)
        press(session, "n", "new task", ENTER, "1", now=now)
        press(session, "q")
        assert session.mode is Mode.DEADLINE_INPUT
        press(session, "x")
        assert session.mode is Mode.NORMAL
        assert [t.description for t in store] == ["a"]

    def test_delete_confirm_uses_delete_binding(self):
        config = taskline.default_config()
        config.keybinds["delete"] = ["D"]
        store = TaskStore()
        store.add("a")
        session = Session(store=store, config=config)
        press(session, "D", "D")
        assert len(store) == 0
