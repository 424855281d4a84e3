"""Offline-first synchronization between the local store and the cloud."""
