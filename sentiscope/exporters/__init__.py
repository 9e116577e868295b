"""
sentiscope/exporters — bulk CSV / JSON export of analysis records.
"""

from sentiscope.exporters.record_exporter import ExportOptions, ExportResult, RecordExporter

__all__ = ["ExportOptions", "ExportResult", "RecordExporter"]
