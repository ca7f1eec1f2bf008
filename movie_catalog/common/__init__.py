"""Shared envelope, error and health plumbing."""
