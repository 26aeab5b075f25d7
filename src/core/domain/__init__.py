"""Modelos y entidades del dominio.

Por qué:
- Aquí viven los tipos puros del mapper (paths, subtree, estados de llamada).
- El dominio no conoce D-Bus, HTTP ni CLI: solo conceptos del problema.
"""
