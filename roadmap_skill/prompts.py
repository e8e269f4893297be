"""Prompt texts that guide an agent through common roadmap workflows."""

from __future__ import annotations

import textwrap
from typing import Optional

STATUS_REMINDER = textwrap.dedent("""\
    ## Keep status in sync
    1. Use update_task to set a task to in-progress when you start it
    2. Set it to done when finished; completion time is recorded automatically
    3. If blocked, note it in the description and move the task to review""")


def recommend_next_tasks(project_id: Optional[str] = None, limit: int = 3) -> str:
    context = f"Analyze tasks for project {project_id}" if project_id else "Analyze tasks for all active projects"
    return textwrap.dedent(f"""\
        {context}, and recommend the {limit} tasks I should prioritize next.

        ## Recommendation order
        1. Urgent and important: critical tasks due today or tomorrow, overdue high-priority tasks
        2. High value: high-priority tasks due this week, tasks blocking other work
        3. Quick wins: medium-priority tasks that finish in an hour or two
        4. Planned work: tasks already in-progress, normal tasks due soon

        ## Steps
        1. Call list_tasks (optionally with project_id) to fetch pending tasks
        2. Focus on critical and high priorities, then check due dates
        3. Return {limit} tasks, each with the project name, the reason and a concrete next action

        """) + STATUS_REMINDER


def auto_prioritize(project_id: Optional[str] = None) -> str:
    context = (f"Analyze task priorities for project {project_id}" if project_id
               else "Analyze task priorities for all projects")
    return textwrap.dedent(f"""\
        {context} and suggest priority adjustments.

        ## Rules
        - Overdue or due within 2 days: raise to critical
        - Due within a week: at least high
        - Blocking other tasks: raise one level
        - No due date and idle for a month: consider lowering

        ## Steps
        1. Call list_tasks with include_completed=false
        2. Compare each task's due date and status with its current priority
        3. Present a table of (task, current priority, suggested priority, reason)
        4. After confirmation, apply changes with batch_update_tasks grouped by target priority
        """)


def enhance_task_details(task_id: str) -> str:
    return textwrap.dedent(f"""\
        Improve the details of task {task_id}.

        ## Steps
        1. Find the task with list_tasks or get_task
        2. Rewrite the description to include:
           - a one-paragraph goal
           - acceptance criteria as a checklist
           - subtasks with rough estimates
           - required resources or dependencies
        3. Suggest fitting tags from list_tags (create missing ones with create_tag)
        4. Save the result with update_task
        """)


def quick_capture(idea: str, project_id: Optional[str] = None) -> str:
    target = (f"Add it to project {project_id}." if project_id
              else "Pick the best matching project with list_projects, or ask before creating one.")
    return textwrap.dedent(f"""\
        Capture this idea as a task: "{idea}"

        {target}

        ## Steps
        1. Derive a short actionable title and a description
        2. Classify it (bug, feature, chore, research) and reuse matching tags from list_tags
        3. Estimate priority: critical for blockers, high for this week, medium by default, low for someday
        4. Create it with create_task and report the new task ID
        """)
