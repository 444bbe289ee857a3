"""Bus topic names."""

ROOT_CHANGED = "root.changed"
TREE_CHANGED = "tree.changed"
WORKSPACE_CHANGED = "workspace.changed"
CONFIG_WRITE_FAILED = "config.write_failed"
