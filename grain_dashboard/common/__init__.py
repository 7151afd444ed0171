"""Cross-cutting helpers for settings and logging."""
