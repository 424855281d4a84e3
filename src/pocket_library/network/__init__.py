"""Network collaborators: connectivity probe and catalog client."""
