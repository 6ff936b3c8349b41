"""Shared fixtures for the taskline tests."""

import datetime as dt

import pytest

import taskline


@pytest.fixture
def now():
    """A fixed moment used to resolve deadlines."""
    return dt.datetime(2024, 3, 15, 10, 30)


@pytest.fixture
def session():
    """A session with default keybinds and two tasks, the first selected."""
    store = taskline.TaskStore()
    store.add("write report")
    store.add("call bank", dt.datetime(2024, 3, 20))
    return taskline.Session(store=store)
