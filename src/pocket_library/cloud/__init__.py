"""Cloud collaborators: Firebase auth and the Firestore document store."""
