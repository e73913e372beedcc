"""
Task query and ordering engine.

Pure functions that turn a raw collection of tasks into the view a task
list renders. Nothing here touches the network or holds state, so every
function can be exercised directly from unit tests.

Two view modes exist and are never combined:

1. **Named filter** -- ``select_by_filter`` with ``all``, ``pending``,
   ``completed``, ``high`` or a tag name.
2. **Free-text search** -- ``parse_query`` turns a string such as
   ``"priority:high tag:work report"`` into a ``ParsedQuery`` and
   ``matches`` evaluates it against a task. All parts are AND-combined.

Key Concepts Demonstrated:
- Total, deterministic sort keys (no comparator can raise)
- A tiny tokenising parser with typed filter prefixes
- Short-circuit predicate evaluation
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone

from .models import Tag, Task, TaskPriority, TaskStatus, priority_rank

FILTER_ALL = "all"
FILTER_PENDING = TaskStatus.PENDING.value
FILTER_COMPLETED = TaskStatus.COMPLETED.value
FILTER_HIGH = TaskPriority.HIGH.value

FILTER_KEYS: tuple[str, ...] = (FILTER_ALL, FILTER_PENDING, FILTER_COMPLETED, FILTER_HIGH)

PRIORITY_PREFIX = "priority:"
STATUS_PREFIX = "status:"
TAG_PREFIX = "tag:"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


# -----------------------------------------------------------------------------
# Sorting
# -----------------------------------------------------------------------------

def _sort_key(task: Task) -> tuple:
    has_no_due_date = task.due_date is None
    return (
        has_no_due_date,
        task.due_date or _EPOCH,
        -priority_rank(task.priority),
        # Deterministic tie-breakers
        task.title.lower(),
        task.created_at,
        task.id is None,
        task.id or 0,
    )


def sort_tasks(tasks: Iterable[Task]) -> list[Task]:
    """
    Sort tasks for display.

    Tasks with a due date come first, earliest due date first. Ties
    (equal dates, or no date at all) are broken by priority, highest
    first; unrecognised priorities rank below ``low``. Remaining ties
    fall back to title, creation time and id so that the result does not
    depend on input order.

    Args:
        tasks: Tasks in any order.

    Returns:
        A new list; the input is left untouched.
    """
    return sorted(tasks, key=_sort_key)


# -----------------------------------------------------------------------------
# Query parsing
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class ParsedQuery:
    """
    Structured form of a free-text search string.

    Attributes:
        priority_filter: Required priority, or None.
        status_filter: Required status, or None. Only ``pending`` and
            ``completed`` can ever match.
        tag_filters: Tag names that must all be present on a task.
        terms: Plain words that must all match somewhere on a task.
    """

    priority_filter: str | None = None
    status_filter: str | None = None
    tag_filters: frozenset[str] = frozenset()
    terms: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return (
            self.priority_filter is None
            and self.status_filter is None
            and not self.tag_filters
            and not self.terms
        )


def parse_query(text: str) -> ParsedQuery:
    """
    Parse a free-text search string.

    The input is lower-cased and split on whitespace. ``priority:`` and
    ``status:`` tokens set their filter (the last occurrence wins),
    ``tag:`` tokens accumulate, and every other token becomes a term.

    Args:
        text: Raw search box contents.

    Returns:
        The parsed query.

    Example:
        >>> parse_query("priority:high status:pending tag:urgent buy milk").terms
        ('buy', 'milk')
    """
    priority_filter: str | None = None
    status_filter: str | None = None
    tag_filters: set[str] = set()
    terms: list[str] = []

    for token in (text or "").lower().split():
        if token.startswith(PRIORITY_PREFIX):
            priority_filter = token[len(PRIORITY_PREFIX):]
        elif token.startswith(STATUS_PREFIX):
            status_filter = token[len(STATUS_PREFIX):]
        elif token.startswith(TAG_PREFIX):
            tag_filters.add(token[len(TAG_PREFIX):])
        else:
            terms.append(token)

    return ParsedQuery(
        priority_filter=priority_filter,
        status_filter=status_filter,
        tag_filters=frozenset(tag_filters),
        terms=tuple(terms),
    )


# -----------------------------------------------------------------------------
# Matching
# -----------------------------------------------------------------------------

def _status_allows(status_filter: str, task: Task) -> bool:
    if status_filter == FILTER_PENDING:
        return not task.is_completed
    if status_filter == FILTER_COMPLETED:
        return task.is_completed
    return False


def _term_matches(term: str, task: Task, tag_names: Sequence[str]) -> bool:
    if term in task.title.lower() or term in task.description.lower():
        return True
    if term in task.priority.lower():
        return True
    if term == FILTER_PENDING and not task.is_completed:
        return True
    if term == FILTER_COMPLETED and task.is_completed:
        return True
    return any(term in name for name in tag_names)


def matches(task: Task, query: ParsedQuery) -> bool:
    """
    Return True if a task satisfies every part of a parsed query.

    Stages run in order and stop at the first failure: priority filter,
    status filter, tag filters, then plain terms. A term matches when it
    is a substring of the title, description, priority or any tag name,
    or when it is ``pending``/``completed`` and the task is in that state.

    Args:
        task: Task to test.
        query: Result of ``parse_query``.

    Returns:
        Whether the task belongs in the search results.
    """
    if query.priority_filter is not None and task.priority.lower() != query.priority_filter:
        return False

    if query.status_filter is not None and not _status_allows(query.status_filter, task):
        return False

    tag_names = [name.lower() for name in task.tags]
    if any(tag not in tag_names for tag in query.tag_filters):
        return False

    return all(_term_matches(term, task, tag_names) for term in query.terms)


def search_tasks(tasks: Iterable[Task], text: str) -> list[Task]:
    """Parse ``text``, keep the matching tasks and return them sorted."""
    query = parse_query(text)
    return sort_tasks(task for task in tasks if matches(task, query))


# -----------------------------------------------------------------------------
# Named filters
# -----------------------------------------------------------------------------

def select_by_filter(filter_key: str, tasks: Sequence[Task]) -> list[Task]:
    """
    Select the tasks shown under a named filter.

    ``all``, ``pending``, ``completed`` and ``high`` are built in; any
    other key is treated as a tag name and matched exactly against each
    task's tags. A tag name that no longer exists in the tag collection
    still selects the tasks that carry it.

    Args:
        filter_key: Built-in filter key or tag name.
        tasks: Tasks to filter.

    Returns:
        A new list preserving input order.
    """
    if filter_key == FILTER_ALL:
        return list(tasks)
    if filter_key == FILTER_PENDING:
        return [task for task in tasks if not task.is_completed]
    if filter_key == FILTER_COMPLETED:
        return [task for task in tasks if task.is_completed]
    if filter_key == FILTER_HIGH:
        return [task for task in tasks if task.priority.lower() == FILTER_HIGH]
    return [task for task in tasks if filter_key in task.tags]


# -----------------------------------------------------------------------------
# Tag colour lookup
# -----------------------------------------------------------------------------

def resolve_tag_color(name: str, tags: Iterable[Tag], default_color: str) -> str:
    """Return the colour of the tag called ``name``, or ``default_color``."""
    for tag in tags:
        if tag.name == name:
            return tag.color
    return default_color


def tag_color_name(color: str, color_names: Mapping[str, str], default_name: str = "Custom") -> str:
    """Look up the display name of a ``#RRGGBB`` colour in a name table."""
    return color_names.get(color.upper(), default_name)
