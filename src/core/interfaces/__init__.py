"""Interfaces/abstracciones del Core.

Por qué:
- Define contratos (Protocol) que implementan adaptadores concretos
  (cliente REST de Octane, sinks de consola y Slack).
- Permite invertir dependencias: el Core depende de abstracciones.
"""
