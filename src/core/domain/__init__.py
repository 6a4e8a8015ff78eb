"""Modelos y entidades del dominio.

Por qué:
- Aquí viven las estructuras de datos puras y estrictas (Pydantic v2).
- El dominio no conoce HTTP, Slack ni la API de Octane: solo conceptos del problema
  (subtipos, list nodes, formularios de respuesta, resultados tipados).
"""
