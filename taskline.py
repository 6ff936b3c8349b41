from __future__ import annotations

import calendar
import configparser
import curses
import datetime as dt
import enum
import json
import logging
import textwrap
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List

TASKS_FILE = Path("tasks.json")
CONFIG_PATH = Path.home() / ".config" / "taskline" / "config.ini"
DEADLINE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger("taskline")

COLOR_NAMES = {
    "black": curses.COLOR_BLACK,
    "red": curses.COLOR_RED,
    "green": curses.COLOR_GREEN,
    "yellow": curses.COLOR_YELLOW,
    "blue": curses.COLOR_BLUE,
    "magenta": curses.COLOR_MAGENTA,
    "cyan": curses.COLOR_CYAN,
    "white": curses.COLOR_WHITE,
    "default": -1,
    "none": -1,
}

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def default_keybinds() -> Dict[str, list]:
    return {
        "quit": ["q"],
        "new": ["n"],
        "delete": ["d"],
        "edit": ["e"],
        "toggle_done": ["c"],
        "up": ["KEY_UP"],
        "down": ["KEY_DOWN"],
    }


def default_colors() -> Dict[str, str]:
    return {
        "default_fg": "default",
        "highlight_fg": "yellow",
        "overdue_fg": "red",
        "completed_fg": "red",
    }


@dataclass
class Config:
    keybinds: Dict[str, List[object]]
    tasks_file: Path
    default_fg: int
    highlight_fg: int
    overdue_fg: int
    completed_fg: int
    show_statusbar: bool = True
    show_deadlines: bool = True
    log_file: Path | None = None
    log_level: int = logging.WARNING


SPECIAL_KEYS = {
    "KEY_UP": curses.KEY_UP,
    "KEY_DOWN": curses.KEY_DOWN,
    "KEY_LEFT": curses.KEY_LEFT,
    "KEY_RIGHT": curses.KEY_RIGHT,
    "KEY_HOME": curses.KEY_HOME,
    "KEY_END": curses.KEY_END,
    "KEY_PPAGE": curses.KEY_PPAGE,
    "KEY_NPAGE": curses.KEY_NPAGE,
    "KEY_DC": curses.KEY_DC,
    "ESC": "\x1b",
    "TAB": "\t",
    "SPACE": " ",
}

ENTER_KEYS = ("\n", "\r", curses.KEY_ENTER)
BACKSPACE_KEYS = (curses.KEY_BACKSPACE, "\b", "\x7f")
ESCAPE = "\x1b"

MIN_WIDTH = 40
MIN_HEIGHT = 8


def load_parser_with_lines(path: Path) -> tuple[configparser.ConfigParser, dict[tuple[str, str], int], str | None]:
    """Read the INI file and remember the line each option was set on."""
    parser = configparser.ConfigParser()
    lines: dict[tuple[str, str], int] = {}
    if not path.exists():
        return parser, lines, None
    try:
        text = path.read_text()
    except OSError as exc:
        return parser, lines, f"could not read config: {exc}"
    try:
        parser.read_string(text)
    except configparser.Error as exc:
        return parser, lines, f"could not parse config: {exc}"
    section = None
    for number, raw in enumerate(text.splitlines(), 1):
        stripped = raw.strip()
        if not stripped or stripped.startswith(("#", ";")):
            continue
        if stripped.startswith("[") and stripped.endswith("]"):
            section = stripped[1:-1].strip().lower()
            continue
        if section and ("=" in stripped or ":" in stripped):
            sep = "=" if "=" in stripped else ":"
            lines[(section, stripped.split(sep, 1)[0].strip().lower())] = number
    return parser, lines, None


def parse_csv_list(csv: str | None) -> List[str]:
    if not csv:
        return []
    return [item.strip() for item in csv.split(",") if item.strip()]


def resolve_color(value: str | int | None, fallback: str | int) -> int:
    candidate = fallback if value is None else value
    if isinstance(candidate, int):
        return candidate
    key = candidate.strip().lower()
    if key in COLOR_NAMES:
        return COLOR_NAMES[key]
    try:
        return int(key)
    except ValueError:
        return COLOR_NAMES["default"]


def normalize_key_token(token: object) -> object:
    if isinstance(token, int):
        return token
    if isinstance(token, str):
        if len(token) == 1:
            return token
        trimmed = token.strip()
        if len(trimmed) == 1:
            return trimmed
        upper = trimmed.upper()
        if upper in SPECIAL_KEYS:
            return SPECIAL_KEYS[upper]
    return None


def normalize_keybinds(raw: Dict[str, list] | None) -> Dict[str, List[object]]:
    """Merge user keybinds over the defaults, keeping the order keys were listed in."""
    merged: Dict[str, List[object]] = {}
    for action, tokens in default_keybinds().items():
        incoming = tokens
        if raw and raw.get(action):
            incoming = raw[action]
        keys: List[object] = []
        for tok in incoming:
            resolved = normalize_key_token(tok)
            if resolved is not None and resolved not in keys:
                keys.append(resolved)
        merged[action] = keys or [normalize_key_token(t) for t in tokens]
    return merged


DEFAULT_KEYBINDS = normalize_keybinds(None)


def format_key(token: object) -> str:
    if isinstance(token, str):
        if token in ("\n", "\r"):
            return "enter"
        if token == ESCAPE:
            return "esc"
        if token == " ":
            return "space"
        if token == "\t":
            return "tab"
        return token
    if isinstance(token, int):
        for name, value in SPECIAL_KEYS.items():
            if value == token:
                return name.lower().removeprefix("key_")
        return f"key-{token}"
    return "?"


def default_config() -> Config:
    colors = default_colors()
    return Config(
        keybinds=normalize_keybinds(None),
        tasks_file=TASKS_FILE,
        default_fg=resolve_color(None, colors["default_fg"]),
        highlight_fg=resolve_color(None, colors["highlight_fg"]),
        overdue_fg=resolve_color(None, colors["overdue_fg"]),
        completed_fg=resolve_color(None, colors["completed_fg"]),
        show_statusbar=True,
        show_deadlines=True,
        log_file=None,
        log_level=logging.WARNING,
    )


def load_config() -> tuple[Config, list[str]]:
    parser, line_numbers, load_error = load_parser_with_lines(CONFIG_PATH)
    errors: list[str] = []
    if load_error:
        errors.append(load_error)

    def at(section: str, option: str) -> str:
        ln = line_numbers.get((section, option))
        return f"line {ln}: " if ln else ""

    raw_keybinds = None
    if parser.has_section("keybinds"):
        known = default_keybinds()
        raw_keybinds = {}
        for action, tokens in parser.items("keybinds"):
            if action not in known:
                errors.append(f"{at('keybinds', action)}unknown action '{action}'")
                continue
            parsed = parse_csv_list(tokens)
            bad = [tok for tok in parsed if normalize_key_token(tok) is None]
            if bad:
                errors.append(f"{at('keybinds', action)}{action} has unknown keys: {', '.join(bad)}")
            raw_keybinds[action] = parsed
    keybinds = normalize_keybinds(raw_keybinds)
    owners: Dict[object, str] = {}
    for action, keys in keybinds.items():
        for key in keys:
            previous = owners.get(key)
            if previous and previous != action:
                errors.append(
                    f"{at('keybinds', action) or at('keybinds', previous)}"
                    f"{format_key(key)} is bound to both {previous} and {action}"
                )
            owners[key] = action

    color_defaults = default_colors()

    def parse_color(option: str) -> int:
        raw = parser.get("colors", option, fallback=None) if parser.has_section("colors") else None
        fallback = color_defaults[option]
        if raw is not None:
            candidate = raw.strip().lower()
            if candidate not in COLOR_NAMES:
                try:
                    int(candidate)
                except ValueError:
                    errors.append(f"{at('colors', option)}colors.{option} '{raw}' is invalid; using {fallback}")
        return resolve_color(raw, fallback)

    default_fg = parse_color("default_fg")
    highlight_fg = parse_color("highlight_fg")
    overdue_fg = parse_color("overdue_fg")
    completed_fg = parse_color("completed_fg")

    def parse_bool(option: str, fallback: bool) -> bool:
        if not parser.has_section("general"):
            return fallback
        try:
            return parser.getboolean("general", option, fallback=fallback)
        except ValueError:
            errors.append(f"{at('general', option)}general.{option} must be true/false; using {fallback}")
            return fallback

    show_statusbar = parse_bool("show_statusbar", True)
    show_deadlines = parse_bool("show_deadlines", True)

    def parse_path(option: str) -> Path | None:
        if not parser.has_section("general"):
            return None
        raw = parser.get("general", option, fallback="").strip()
        if not raw:
            return None
        candidate = Path(raw).expanduser()
        if candidate.is_dir():
            errors.append(f"{at('general', option)}{option} points to a directory")
            return None
        return candidate

    tasks_file = parse_path("tasks_file") or TASKS_FILE
    log_file = parse_path("log_file")

    log_level = logging.WARNING
    if parser.has_section("general"):
        raw_level = parser.get("general", "log_level", fallback="WARNING").strip().upper()
        if raw_level in LOG_LEVELS:
            log_level = LOG_LEVELS[raw_level]
        else:
            errors.append(f"{at('general', 'log_level')}log_level must be one of {', '.join(LOG_LEVELS)}; using WARNING")

    if errors:
        return default_config(), errors

    return Config(
        keybinds=keybinds,
        tasks_file=tasks_file,
        default_fg=default_fg,
        highlight_fg=highlight_fg,
        overdue_fg=overdue_fg,
        completed_fg=completed_fg,
        show_statusbar=show_statusbar,
        show_deadlines=show_deadlines,
        log_file=log_file,
        log_level=log_level,
    ), errors


def configure_logging(config: Config) -> None:
    # curses owns the terminal, so records only ever go to a file
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(config.log_level)
    if config.log_file is None:
        logger.addHandler(logging.NullHandler())
        return
    config.log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(config.log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)


@dataclass
class Task:
    description: str
    completed: bool = False
    deadline: dt.datetime | None = None

    def toggle_completed(self) -> None:
        self.completed = not self.completed

    def is_overdue(self, now: dt.datetime) -> bool:
        return self.deadline is not None and self.deadline < now and not self.completed

    def display_text(self) -> str:
        prefix = "x " if self.completed else ""
        return f"{prefix}{self.description}"


@dataclass
class TaskStore:
    """Ordered tasks plus the selection cursor.

    A task's index is its only identity. Operations on the selected task are
    no-ops when the selection is missing or out of range.
    """

    tasks: List[Task] = field(default_factory=list)
    selected: int | None = 0

    def __len__(self) -> int:
        return len(self.tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(self.tasks)

    def current(self) -> Task | None:
        if self.selected is None or not 0 <= self.selected < len(self.tasks):
            return None
        return self.tasks[self.selected]

    def has_selection(self) -> bool:
        return self.current() is not None

    def clamp_selection(self) -> None:
        if self.selected is None:
            return
        if not self.tasks:
            self.selected = 0
        else:
            self.selected = max(0, min(self.selected, len(self.tasks) - 1))

    def add(self, description: str, deadline: dt.datetime | None = None) -> Task:
        task = Task(description=description, deadline=deadline)
        self.tasks.append(task)
        self.clamp_selection()
        return task

    def update(self, description: str, deadline: dt.datetime | None) -> Task | None:
        task = self.current()
        if task is None:
            return None
        task.description = description
        task.deadline = deadline
        return task

    def delete(self) -> Task | None:
        task = self.current()
        if task is None:
            return None
        del self.tasks[self.selected]
        self.clamp_selection()
        return task

    def toggle_completed(self) -> Task | None:
        task = self.current()
        if task is not None:
            task.toggle_completed()
        return task

    def move_selection(self, delta: int) -> None:
        if self.selected is None:
            return
        self.selected += delta
        self.clamp_selection()


DEADLINE_KEYWORDS = ("Today", "Tomorrow", "This Week", "This Month")
DEADLINE_KEYS = {str(idx): keyword for idx, keyword in enumerate(DEADLINE_KEYWORDS, 1)}


def resolve_deadline(keyword: str, today: dt.date) -> dt.datetime | None:
    """Turn a deadline keyword into midnight of the day it names, or None."""
    if isinstance(today, dt.datetime):
        today = today.date()
    if keyword == "Today":
        day = today
    elif keyword == "Tomorrow":
        day = today + dt.timedelta(days=1)
    elif keyword == "This Week":
        # weeks start on Sunday, so the week ends on Saturday
        days_from_sunday = (today.weekday() + 1) % 7
        day = today + dt.timedelta(days=6 - days_from_sunday)
    elif keyword == "This Month":
        day = today.replace(day=calendar.monthrange(today.year, today.month)[1])
    else:
        return None
    return dt.datetime.combine(day, dt.time())


class TaskFileError(Exception):
    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


def task_to_record(task: Task) -> Dict[str, object]:
    return {
        "description": task.description,
        "completed": task.completed,
        "deadline": task.deadline.strftime(DEADLINE_FORMAT) if task.deadline else None,
    }


def task_from_record(raw: object) -> Task:
    if not isinstance(raw, dict):
        raise ValueError("expected an object")
    description = raw.get("description")
    completed = raw.get("completed")
    if not isinstance(description, str):
        raise ValueError("description must be a string")
    if not isinstance(completed, bool):
        raise ValueError("completed must be true or false")
    deadline = raw.get("deadline")
    if deadline is not None:
        if not isinstance(deadline, str):
            raise ValueError("deadline must be a string or null")
        deadline = dt.datetime.strptime(deadline, DEADLINE_FORMAT)
    return Task(description=description, completed=completed, deadline=deadline)


def load_tasks(path: Path) -> List[Task]:
    """Load tasks from path. A missing file is created holding an empty list."""
    try:
        if not path.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("[]", encoding="utf-8")
            logger.info("created empty task file %s", path)
            return []
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise TaskFileError(path, str(exc)) from exc
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise TaskFileError(path, f"invalid JSON ({exc})") from exc
    except RecursionError as exc:
        raise TaskFileError(path, "JSON nested too deeply") from exc
    if not isinstance(data, list):
        raise TaskFileError(path, "expected a JSON list of tasks")
    tasks: List[Task] = []
    for idx, raw in enumerate(data):
        try:
            tasks.append(task_from_record(raw))
        except ValueError as exc:
            raise TaskFileError(path, f"task {idx}: {exc}") from exc
    return tasks


def load_store(config: Config) -> tuple[TaskStore, list[str]]:
    """Build the session store from the tasks file, starting empty if it cannot be read."""
    try:
        tasks = load_tasks(config.tasks_file)
    except TaskFileError as exc:
        logger.error("could not load tasks: %s", exc)
        return TaskStore(), [str(exc)]
    logger.info("loaded %d tasks from %s", len(tasks), config.tasks_file)
    return TaskStore(tasks=tasks), []


def save_tasks(tasks: List[Task], path: Path) -> int:
    """Write the incomplete tasks to path and return how many were written."""
    active = [task_to_record(task) for task in tasks if not task.completed]
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(active, f, indent=4)
    return len(active)


class Mode(enum.Enum):
    NORMAL = "normal"
    INPUT = "input"
    EDIT = "edit"
    DELETE_CONFIRM = "delete_confirm"
    DEADLINE_INPUT = "deadline_input"


class PendingCommit(enum.Enum):
    ADD = "add"
    EDIT = "edit"


@dataclass
class Session:
    store: TaskStore = field(default_factory=TaskStore)
    mode: Mode = Mode.NORMAL
    input: str = ""
    temp_description: str = ""
    pending: PendingCommit | None = None
    config: Config | None = None

    def keybinds(self) -> Dict[str, List[object]]:
        return self.config.keybinds if self.config else DEFAULT_KEYBINDS

    def is_action(self, key: object, action: str) -> bool:
        return key in self.keybinds().get(action, ())

    def reset(self) -> None:
        self.mode = Mode.NORMAL
        self.input = ""
        self.temp_description = ""
        self.pending = None


def is_printable(key: object) -> bool:
    return isinstance(key, str) and len(key) == 1 and key.isprintable()


def handle_normal_key(session: Session, key: object) -> bool:
    store = session.store
    if session.is_action(key, "quit"):
        return False
    if session.is_action(key, "new"):
        session.mode = Mode.INPUT
        session.pending = PendingCommit.ADD
        session.input = ""
    elif session.is_action(key, "delete"):
        if store.has_selection():
            session.mode = Mode.DELETE_CONFIRM
    elif session.is_action(key, "edit"):
        task = store.current()
        if task is not None:
            session.mode = Mode.EDIT
            session.pending = PendingCommit.EDIT
            session.input = task.description
    elif session.is_action(key, "toggle_done"):
        task = store.toggle_completed()
        if task is not None:
            logger.debug("toggled %r to completed=%s", task.description, task.completed)
    elif session.is_action(key, "up"):
        store.move_selection(-1)
    elif session.is_action(key, "down"):
        store.move_selection(1)
    return True


def handle_delete_confirm_key(session: Session, key: object) -> bool:
    if session.is_action(key, "delete"):
        task = session.store.delete()
        if task is not None:
            logger.debug("deleted %r", task.description)
    session.mode = Mode.NORMAL
    return True


def handle_text_key(session: Session, key: object) -> bool:
    if key in ENTER_KEYS:
        session.temp_description = session.input
        session.input = ""
        session.mode = Mode.DEADLINE_INPUT
    elif key in BACKSPACE_KEYS:
        session.input = session.input[:-1]
    elif is_printable(key):
        session.input += key
    return True


def handle_deadline_key(session: Session, key: object, now: dt.datetime) -> bool:
    if isinstance(key, str) and key in DEADLINE_KEYS:
        session.input = DEADLINE_KEYS[key]
    elif key == ESCAPE or session.is_action(key, "quit"):
        logger.debug("abandoned pending %s", session.pending.value if session.pending else "commit")
        session.reset()
    elif key in ENTER_KEYS:
        deadline = resolve_deadline(session.input, now.date())
        description = session.temp_description
        if session.pending is PendingCommit.EDIT:
            session.store.update(description, deadline)
            logger.debug("updated task %s to %r (deadline %s)", session.store.selected, description, deadline)
        else:
            session.store.add(description, deadline)
            logger.debug("added %r (deadline %s)", description, deadline)
        session.reset()
    return True


def process_key(session: Session, key: object, now: dt.datetime | None = None) -> bool:
    """Apply one key to the session. Returns False once the user asks to quit."""
    if session.mode is Mode.NORMAL:
        return handle_normal_key(session, key)
    if session.mode is Mode.DELETE_CONFIRM:
        return handle_delete_confirm_key(session, key)
    if session.mode in (Mode.INPUT, Mode.EDIT):
        return handle_text_key(session, key)
    if session.mode is Mode.DEADLINE_INPUT:
        return handle_deadline_key(session, key, now or dt.datetime.now())
    return True


def prompt_for(session: Session) -> tuple[str, str]:
    keybinds = session.keybinds()
    if session.mode is Mode.INPUT:
        return "Input", f"Input Mode: {session.input}"
    if session.mode is Mode.EDIT:
        return "Edit", f"Editing: {session.input}"
    if session.mode is Mode.DELETE_CONFIRM:
        delete_key = format_key(keybinds["delete"][0])
        return "Delete", f"Press '{delete_key}' again to confirm deletion, or any other key to cancel."
    if session.mode is Mode.DEADLINE_INPUT:
        options = ", ".join(f"{num}: {keyword}" for num, keyword in DEADLINE_KEYS.items())
        if session.input:
            options = f"{options} [{session.input}]"
        return "Select Deadline", options
    return "Input", f"Press '{format_key(keybinds['new'][0])}' to add a task"


def task_style_kind(task: Task, selected: bool, now: dt.datetime) -> str:
    if task.is_overdue(now):
        return "overdue"
    if task.completed and not selected:
        return "completed"
    if selected:
        return "selected"
    return "normal"


def task_line(task: Task, width: int, show_deadline: bool) -> str:
    text = task.display_text()
    if show_deadline and task.deadline is not None:
        stamp = task.deadline.strftime("%Y-%m-%d")
        room = width - len(stamp) - 1
        if room > 0:
            return f"{text[:room].ljust(room)} {stamp}"
    return text[:width].ljust(width)


def help_line(session: Session) -> str:
    keybinds = session.keybinds()
    labels = [
        ("quit", "quit"),
        ("new", "new"),
        ("edit", "edit"),
        ("delete", "delete"),
        ("toggle_done", "done"),
        ("up", "up"),
        ("down", "down"),
    ]
    return "  ".join(f"{format_key(keybinds[action][0])} {label}" for action, label in labels)


def draw_box(win: curses.window, y: int, x: int, h: int, w: int, title: str, attr: int) -> None:
    if h < 2 or w < 2:
        return
    try:
        win.hline(y, x + 1, curses.ACS_HLINE | attr, w - 2)
        win.hline(y + h - 1, x + 1, curses.ACS_HLINE | attr, w - 2)
        win.vline(y + 1, x, curses.ACS_VLINE | attr, h - 2)
        win.vline(y + 1, x + w - 1, curses.ACS_VLINE | attr, h - 2)
        win.addch(y, x, curses.ACS_ULCORNER | attr)
        win.addch(y, x + w - 1, curses.ACS_URCORNER | attr)
        win.addch(y + h - 1, x, curses.ACS_LLCORNER | attr)
        win.addch(y + h - 1, x + w - 1, curses.ACS_LRCORNER | attr)
    except curses.error:
        pass
    if title and w > 4:
        win.addnstr(y, x + 1, title, w - 2, attr | curses.A_BOLD)


def set_cursor_visible(visible: bool) -> None:
    try:
        curses.curs_set(1 if visible else 0)
    except curses.error:
        pass


def draw(stdscr: curses.window, session: Session, status: str = "") -> None:
    stdscr.erase()
    height, width = stdscr.getmaxyx()
    if width < MIN_WIDTH or height < MIN_HEIGHT:
        set_cursor_visible(False)
        msg = f"taskline needs at least {MIN_WIDTH}x{MIN_HEIGHT}. current: {width}x{height}"
        hint = "resize your terminal to continue"
        y = max(0, height // 2 - 1)
        try:
            stdscr.addnstr(y, 0, msg, max(1, width - 1), curses.A_BOLD)
            stdscr.addnstr(y + 1, 0, hint, max(1, width - 1))
        except curses.error:
            pass
        stdscr.refresh()
        return

    config = session.config
    show_statusbar = config.show_statusbar if config else True
    show_deadlines = config.show_deadlines if config else True
    now = dt.datetime.now()
    frame_attr = curses.color_pair(1)
    left = 1
    box_w = width - 2
    bottom = height - 1

    # prompt panel
    title, text = prompt_for(session)
    draw_box(stdscr, 1, left, 3, box_w, title, frame_attr)
    visible = box_w - 4
    shown = text if len(text) <= visible else text[len(text) - visible :]
    stdscr.addnstr(2, left + 2, shown, visible, frame_attr)
    cursor_x = left + 2 + len(shown)

    # task list panel
    list_y = 4
    list_h = bottom - list_y
    draw_box(stdscr, list_y, left, list_h, box_w, "Tasks", frame_attr)
    rows = max(0, list_h - 2)
    row_w = box_w - 4
    store = session.store
    selected = store.selected if store.has_selection() else None
    offset = 0
    if selected is not None and selected >= rows:
        offset = selected - rows + 1
    for row, idx in enumerate(range(offset, min(len(store), offset + rows))):
        task = store.tasks[idx]
        is_selected = idx == selected
        kind = task_style_kind(task, is_selected, now)
        if kind == "overdue":
            attr = curses.color_pair(3)
            if is_selected:
                attr |= curses.A_BOLD | curses.A_STANDOUT
        elif kind == "completed":
            attr = curses.color_pair(4) | curses.A_DIM
        elif kind == "selected":
            attr = curses.color_pair(2) | curses.A_BOLD | curses.A_STANDOUT
        else:
            attr = curses.color_pair(1)
        stdscr.addnstr(list_y + 1 + row, left + 2, task_line(task, row_w, show_deadlines), row_w, attr)
    if not len(store) and rows:
        stdscr.addnstr(list_y + 1, left + 2, "(no tasks)", row_w, curses.color_pair(1) | curses.A_DIM)

    if show_statusbar or status:
        line = status or help_line(session)
        try:
            stdscr.addnstr(height - 1, left + 1, line, max(1, width - 3), curses.color_pair(1) | curses.A_DIM)
        except curses.error:
            pass

    if session.mode in (Mode.INPUT, Mode.EDIT):
        set_cursor_visible(True)
        stdscr.move(2, min(cursor_x, left + box_w - 2))
    else:
        set_cursor_visible(False)
    stdscr.refresh()


@dataclass
class KeyState:
    key: object = None
    time: float = 0.0


def read_key(win: curses.window, kstate: KeyState, *, debounce: float = 0.005, allow_repeat_keys=()) -> object:
    """Return a single key, ignoring identical repeats inside debounce window unless allowed."""
    while True:
        key = win.get_wch()
        now = time.monotonic()
        if (
            isinstance(key, str)
            and key == kstate.key
            and key not in allow_repeat_keys
            and (now - kstate.time) < debounce
        ):
            continue
        kstate.key = key
        kstate.time = now
        return key


def modal_geometry(stdscr: curses.window) -> tuple[int, int, int, int]:
    height, width = stdscr.getmaxyx()
    win_h = max(3, min(height - 2, max(8, height // 3)))
    win_w = max(10, min(width - 2, max(50, int(width * 0.7))))
    start_y = max(0, (height - win_h) // 2)
    start_x = max(0, (width - win_w) // 2)
    return win_h, win_w, start_y, start_x


def show_messages(stdscr: curses.window, title: str, messages: list[str], hint: str) -> None:
    if not messages:
        return
    win_h, win_w, start_y, start_x = modal_geometry(stdscr)
    win = curses.newwin(win_h, win_w, start_y, start_x)
    win.keypad(True)
    win.erase()
    win.border()
    win.addnstr(0, max(1, (win_w - len(title)) // 2), title, win_w - 2, curses.A_BOLD)
    row = 1
    wrap_width = max(10, win_w - 6)
    for message in messages:
        for seg in textwrap.wrap(message, width=wrap_width) or [""]:
            if row >= win_h - 2:
                break
            win.addnstr(row, 2, f"- {seg}", win_w - 4)
            row += 1
    if row < win_h - 1:
        win.addnstr(win_h - 2, max(1, (win_w - len(hint)) // 2), hint, win_w - 2)
    win.refresh()
    try:
        read_key(win, KeyState())
    except curses.error:
        pass


def main(stdscr: curses.window, config: Config | None = None, config_errors: list[str] | None = None) -> None:
    if config is None:
        config, config_errors = load_config()
    curses.curs_set(0)
    curses.set_escdelay(25)
    curses.use_default_colors()
    curses.init_pair(1, config.default_fg, -1)  # frames and plain tasks
    curses.init_pair(2, config.highlight_fg, -1)  # selection
    curses.init_pair(3, config.overdue_fg, -1)  # overdue tasks
    curses.init_pair(4, config.completed_fg, -1)  # completed tasks
    stdscr.keypad(True)

    store, load_errors = load_store(config)
    session = Session(store=store, config=config)
    status = "" if load_errors else f"loaded {len(store)} tasks"

    draw(stdscr, session, status)
    if config_errors:
        show_messages(stdscr, " Config errors (defaults applied) ", config_errors, "Press any key to continue with defaults.")
    if load_errors:
        show_messages(stdscr, " Could not load tasks ", load_errors, "Press any key to start with an empty list.")

    kstate = KeyState()
    while True:
        draw(stdscr, session, status)
        try:
            key = read_key(stdscr, kstate)
        except curses.error:
            continue
        status = ""
        if not process_key(session, key):
            break

    written = save_tasks(session.store.tasks, config.tasks_file)
    logger.info("saved %d tasks to %s", written, config.tasks_file)


def run() -> None:
    config, config_errors = load_config()
    configure_logging(config)
    for err in config_errors:
        logger.warning("config: %s", err)
    curses.wrapper(main, config, config_errors)


if __name__ == "__main__":
    run()
