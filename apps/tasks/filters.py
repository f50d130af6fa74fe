"""
Filter predicates for task listings.

The same TaskFilters are evaluated two ways: in Python by the memory
backend (task_matches) and as a DynamoDB FilterExpression by the DynamoDB
backend (build_filter_expression). Both must agree on every filter.
"""
from typing import Dict, Optional, Tuple

from .dtos import TaskFilters
from .models import Task


def task_matches(task: Task, filters: Optional[TaskFilters]) -> bool:
    if filters is None:
        return True
    if filters.status and task.status != filters.status:
        return False
    if filters.priority and task.priority != filters.priority:
        return False
    if filters.assigned_to and task.assigned_to != filters.assigned_to:
        return False
    if filters.search:
        if filters.search not in task.title and filters.search not in task.description:
            return False
    if filters.due_before:
        # Fixed-width UTC timestamps compare correctly as strings
        if not task.due_date or task.due_date > filters.due_before:
            return False
    if filters.exclude_status and task.status == filters.exclude_status:
        return False
    return True


def build_filter_expression(
    filters: Optional[TaskFilters],
) -> Tuple[Optional[str], Dict[str, str], Dict[str, str]]:
    """
    Translate filters into DynamoDB expression parts.

    Returns:
        (filter_expression, expression_attribute_names, expression_attribute_values)
        filter_expression is None when no filter is set.
    """
    clauses = []
    names: Dict[str, str] = {}
    values: Dict[str, str] = {}

    if filters is None:
        return None, names, values

    if filters.status:
        clauses.append('#status = :status')
        names['#status'] = 'status'
        values[':status'] = filters.status

    if filters.priority:
        clauses.append('#priority = :priority')
        names['#priority'] = 'priority'
        values[':priority'] = filters.priority

    if filters.assigned_to:
        clauses.append('#assignedTo = :assignedTo')
        names['#assignedTo'] = 'assignedTo'
        values[':assignedTo'] = filters.assigned_to

    if filters.search:
        clauses.append('(contains(#title, :search) OR contains(#description, :search))')
        names['#title'] = 'title'
        names['#description'] = 'description'
        values[':search'] = filters.search

    if filters.due_before:
        clauses.append('#dueDate <= :dueDate')
        names['#dueDate'] = 'dueDate'
        values[':dueDate'] = filters.due_before

    if filters.exclude_status:
        clauses.append('#status <> :excludeStatus')
        names['#status'] = 'status'
        values[':excludeStatus'] = filters.exclude_status

    if not clauses:
        return None, names, values
    return ' AND '.join(clauses), names, values
