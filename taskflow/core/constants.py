"""Permission keys for space-level access control.

Each key is a capability that a space role can be granted. Transitions may
name any string as their required permission; these are the ones the API
itself checks.
"""

# Space
VIEW_SPACE = "view_space"
MANAGE_SPACE = "manage_space"

# Tasks
CREATE_TASKS = "create_tasks"
EDIT_TASKS = "edit_tasks"
VIEW_TASKS = "view_tasks"

# Workflows
CREATE_WORKFLOWS = "create_workflows"
EDIT_WORKFLOWS = "edit_workflows"
DELETE_WORKFLOWS = "delete_workflows"
MANAGE_WORKFLOW = "manage_workflow"

# Templates
EDIT_TEMPLATES = "edit_templates"

ALL_PERMISSIONS: frozenset[str] = frozenset(
    {
        VIEW_SPACE,
        MANAGE_SPACE,
        CREATE_TASKS,
        EDIT_TASKS,
        VIEW_TASKS,
        CREATE_WORKFLOWS,
        EDIT_WORKFLOWS,
        DELETE_WORKFLOWS,
        MANAGE_WORKFLOW,
        EDIT_TEMPLATES,
    }
)

# Member roles that count as space administrators.
SPACE_ADMIN_ROLES: frozenset[str] = frozenset({"OWNER", "ADMIN"})

# Column lengths shared by request schemas and definition validation.
WORKFLOW_NAME_MAX_LENGTH = 255
PERMISSION_KEY_MAX_LENGTH = 100
TASK_PRIORITY_MAX_LENGTH = 16

# Task attributes that post-functions may overwrite.
SETTABLE_TASK_FIELDS: frozenset[str] = frozenset(
    {"assignee_id", "priority", "sprint_id", "due_at", "description"}
)

# Task attributes the required_fields guard may inspect.
GUARDABLE_TASK_FIELDS: frozenset[str] = frozenset(
    {"assignee_id", "priority", "sprint_id", "due_at", "description", "title"}
)

# Permissions held by members whose membership has no custom role attached.
# OWNER is not listed: owners hold every permission.
DEFAULT_ROLE_PERMISSIONS: dict[str, frozenset[str]] = {
    "ADMIN": ALL_PERMISSIONS,
    "MEMBER": frozenset({VIEW_SPACE, VIEW_TASKS, CREATE_TASKS, EDIT_TASKS}),
    "VIEWER": frozenset({VIEW_SPACE, VIEW_TASKS}),
}

# Cache
CACHE_PREFIX_PERMISSION = "permission"
