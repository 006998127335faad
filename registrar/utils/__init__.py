"""Shared helpers for pagination and date handling."""
