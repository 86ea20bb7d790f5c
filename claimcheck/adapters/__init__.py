"""Default implementations of the collaborator interfaces."""
