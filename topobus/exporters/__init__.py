"""Exporters for resolved projects"""

from .json_exporter import JsonExporter

__all__ = ['JsonExporter']
