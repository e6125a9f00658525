"""Infra layer."""
