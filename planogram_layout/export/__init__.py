from .export_handler import ExportHandler

__all__ = ['ExportHandler']
