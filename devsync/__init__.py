"""dev-sync: mirror local workspaces to remote hosts as files change."""
