"""
tex2png - render TeX math fragments to PNG through a local render service

A small always-on HTTP service keeps a warm typesetting engine; a short-lived
CLI client starts it on demand and submits render requests.

Architecture:
- Rendering Context: delimiter normalization, macro expansion, TeX -> SVG -> PNG
- Serving Context: HTTP endpoints, process record, start/stop lifecycle
- CLI: tex2png (client) and tex2png-server (service executable)
"""

__version__ = "0.1.0"
