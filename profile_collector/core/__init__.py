"""Session controller and its collaborator interfaces."""
