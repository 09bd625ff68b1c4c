"""Markdown extensions bundled with notemath."""
