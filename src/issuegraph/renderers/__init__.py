"""Renderers — read-only consumers of ReportData."""
